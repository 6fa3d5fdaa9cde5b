"""Blog-post and chat prompt builders.

``build_prompts`` turns a ``GenerationRequest`` into a system prompt (style,
mandatory post structure, formatting rules) and a user prompt (the truncated
paper text, optional metadata and figure list).  The structure is a contract
with the model, not with calling code.  Both builders are pure functions of
their arguments.
"""

from typing import NamedTuple

from paperblog.models import GenerationRequest, PaperMetadata

#: Relay-side paper text budget.  The host app pre-truncates far below this.
DEFAULT_MAX_CHARS = 60_000

TRUNCATION_MARKER = "[... content truncated ...]"

_RULE = "═" * 63

STYLE_DESCRIPTIONS: dict[str, str] = {
    "technical": (
        "Write in a detailed technical style, focusing on methodology, "
        "algorithms, and implementation details. Use precise terminology."
    ),
    "casual": (
        "Write in a casual, easy-to-read style. Explain concepts simply "
        "without jargon. Make it accessible to beginners."
    ),
    "academic": (
        "Write in a formal academic style with proper citations, structured "
        "sections, and scholarly tone."
    ),
    "alphaxiv": (
        "Write in the AlphaXiv style: entertaining, accessible, with creative "
        "commentary, memes references, and emojis."
    ),
}

EMOJI_DIRECTIVE = "Use emojis generously throughout the text"
HUMOR_DIRECTIVE = "Include jokes, memes references, and humorous commentary"

CHAT_SYSTEM_PROMPT = (
    "You are a helpful research assistant. Answer questions about academic "
    "papers clearly and accurately."
)


class BlogPrompt(NamedTuple):
    system: str
    user: str


def style_description(writing_style: str) -> str:
    """Return the style block for ``writing_style``; unknown styles get alphaxiv."""
    return STYLE_DESCRIPTIONS.get(writing_style, STYLE_DESCRIPTIONS["alphaxiv"])


def style_directives(include_emojis: bool, include_humor: bool) -> str:
    directives = []
    if include_emojis:
        directives.append(EMOJI_DIRECTIVE)
    if include_humor:
        directives.append(HUMOR_DIRECTIVE)
    return ". ".join(directives)


def truncate(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Keep the first ``max_chars`` characters, marking the cut when one happens."""
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}\n\n{TRUNCATION_MARKER}"


def build_prompts(
    request: GenerationRequest, max_chars: int = DEFAULT_MAX_CHARS
) -> BlogPrompt:
    """Build the system and user prompts for one blog post.

    Args:
        request:   The generation request as received by the relay.
        max_chars: Paper text budget; longer text is cut and marked.

    Returns:
        A ``BlogPrompt`` whose ``system`` holds the style and structure rules
        and whose ``user`` holds the paper content.
    """
    return BlogPrompt(
        system=build_system_prompt(
            writing_style=request.writing_style,
            include_emojis=request.include_emojis,
            include_humor=request.include_humor,
            custom_prompt=request.custom_prompt,
        ),
        user=build_user_prompt(
            pdf_content=request.pdf_content,
            extracted_images=request.extracted_images,
            metadata=request.arxiv_metadata,
            max_chars=max_chars,
        ),
    )


def build_system_prompt(
    writing_style: str,
    include_emojis: bool,
    include_humor: bool,
    custom_prompt: str,
) -> str:
    custom = f"\n\nAdditional instructions: {custom_prompt}" if custom_prompt else ""
    return f"""\
You are an expert at writing engaging, consistent blog posts about academic papers in the AlphaXiv style.

Style: {style_description(writing_style)}
{style_directives(include_emojis, include_humor)}

{_RULE}
📋 MANDATORY STRUCTURE - FOLLOW THIS EXACTLY FOR EVERY POST:
{_RULE}

# 🎯 [Creative Title with Emojis]
> **Paper**: [Exact Title] | **Authors**: [First Author et al.] | **Year**: [YYYY]

---

## 🔥 TL;DR
[2-3 sentences. Hook the reader with the most exciting finding. Use bold for key terms.]

---

## 🤔 The Problem
[Explain what sucks about current approaches. Make it relatable. 3-4 sentences.]

**Why this matters:** [1 sentence on real-world impact]

---

## 💡 The Big Idea
[Core innovation explained simply. Use analogies. 4-5 sentences.]

**In other words:** [One-line ELI5 explanation]

---

## 🔧 How It Works
[Technical details broken down into digestible chunks. Use numbered lists or bullet points.]

**Key Components:**
1. **[Component 1]**: [What it does]
2. **[Component 2]**: [What it does]
3. **[Component 3]**: [What it does]

---

## 🔢 Key Formulas

$$[Formula in LaTeX]$$

**Translation:** [What this means in plain English]
- **[Variable]**: [What it represents]

---

## 📊 Results That Matter
[Quantitative results with exact numbers. Use tables or bullet points.]

| Metric | Baseline | This Paper | Improvement |
|--------|----------|------------|-------------|
| [Metric 1] | [X] | [Y] | **+Z%** ✨ |
| [Metric 2] | [X] | [Y] | **+Z%** 🚀 |

**Key Takeaway:** [One sentence on what these numbers mean]

---

## 🎨 Why This Is Cool
[Creative commentary. Memes, analogies, hot takes. 3-4 sentences. Be entertaining.]

---

## ⚠️ Limitations & Caveats
- **[Limitation 1]**: [Why it matters]
- **[Limitation 2]**: [Why it matters]

---

## 🔮 Future Directions
[What's next? Where could this go? 2-3 bullets.]

---

## 💭 Final Thoughts
[Your hot take. What does this mean for the field? 2-3 sentences. End with impact.]

---

**Tags:** #[Keyword1] #[Keyword2] #[Keyword3] #[Field] #ML #AI

{_RULE}
🎨 STYLE GUIDELINES - APPLY TO EVERY SECTION:
{_RULE}

**Emojis Usage:**
- Title: 1-2 relevant emojis
- Section headers: ALWAYS use the exact emojis shown above
- In-text: Sprinkle throughout (🚀 for improvements, ✨ for highlights, 💪 for strength, 🤔 for questions, 😅 for humor)
- Results: Use ✅ for success, 📈 for growth, 🎯 for targets

**Formatting Rules:**
- Use **bold** for all key terms, metrics, and important phrases
- Use *italics* for emphasis or quotes
- Use code formatting (backticks) for technical terms, variable names, model names
- Use > blockquotes for important takeaways
- Use --- for section dividers (horizontal rules)
- Use tables for comparisons (always include headers)
- **Math formulas**: Use double dollar signs for display math (block formulas) and single dollar signs for inline math
  - Example block: $$\\mathcal{{L}} = \\sum_{{i=1}}^N \\log p(y_i|x_i)$$
  - Example inline: The loss function $\\mathcal{{L}}$ measures...
  - **NEVER use** square brackets with backslash - they don't render in Markdown

**Tone Consistency:**
- Enthusiastic but not annoying
- Accessible but technically accurate
- Humorous but respectful to authors
- Critical but constructive

**Number Formatting:**
- Always include exact numbers: "92.4% accuracy" not "high accuracy"
- Show improvements: "3.2x faster" or "+15.3% improvement"
- Use bold for impressive numbers: **92.4%**

**Lists:**
- Use numbered lists for sequential steps
- Use bullet points for parallel items
- Maximum 5-7 items per list
- Each item starts with **bold term**: followed by explanation

{_RULE}
⚠️ CRITICAL REQUIREMENTS:
{_RULE}

1. **ALWAYS** follow the structure above, in that exact order
2. **ALWAYS** include quantitative results with exact numbers
3. **ALWAYS** use the specified emojis for each section header
4. **ALWAYS** include horizontal rules (---) between major sections
5. **ALWAYS** end with tags
6. **NEVER** skip sections (except 🔢 Key Formulas if no math)
7. **NEVER** use generic phrases like "impressive results" - give numbers!
8. **NEVER** forget the metadata quote block at the top{custom}"""


def build_user_prompt(
    pdf_content: str,
    extracted_images: list[str] | None = None,
    metadata: PaperMetadata | None = None,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> str:
    return f"""\
Please read this academic paper and generate a blog post following the EXACT structure and style guidelines provided in the system prompt.
{_metadata_section(metadata)}
📄 PAPER CONTENT:

{truncate(pdf_content, max_chars)}
{_figure_section(extracted_images or [])}
{_RULE}

Now generate the blog post in Markdown format, following ALL structure requirements, emoji usage, and formatting rules specified above.

Remember:
- Use the EXACT section headers with their emojis (🔥 TL;DR, 🤔 The Problem, etc.)
- Include quantitative results with exact numbers
- Add horizontal rules (---) between sections
- Include the metadata quote block at the top
- End with tags

Begin the blog post now:"""


def build_chat_prompts(
    pdf_content: str, question: str, max_chars: int = DEFAULT_MAX_CHARS
) -> BlogPrompt:
    """Build prompts for answering one question about a paper."""
    user = f"""\
Based on the following PDF content, answer the question.

PDF Content:
{truncate(pdf_content, max_chars)}

Question: {question}

Please provide a clear, concise, and helpful answer based on the content provided."""
    return BlogPrompt(system=CHAT_SYSTEM_PROMPT, user=user)


def _metadata_section(metadata: PaperMetadata | None) -> str:
    if metadata is None:
        return ""
    lines = []
    if metadata.title:
        lines.append(f"- **Title**: {metadata.title}")
    if metadata.authors:
        lines.append(f"- **Authors**: {', '.join(metadata.authors)}")
    if metadata.published:
        lines.append(f"- **Published**: {metadata.published}")
    if metadata.categories:
        lines.append(f"- **Categories**: {', '.join(metadata.categories)}")
    if metadata.url:
        lines.append(f"- **URL**: {metadata.url}")
    if not lines:
        return ""
    body = "\n".join(lines)
    return f"\n📑 PAPER METADATA (use for the metadata quote block):\n\n{body}\n"


def _figure_section(extracted_images: list[str]) -> str:
    if not extracted_images:
        return ""
    image_list = "\n".join(f"  - {name}" for name in extracted_images)
    return f"""
🖼️ AVAILABLE FIGURES (extracted from LaTeX source):

{image_list}

**CRITICAL INSTRUCTIONS FOR USING FIGURES:**

⚠️ **SYNTAX:** Use EXACTLY this format: ![[figures_folder/EXACT_FILENAME]]

✅ CORRECT Examples:
  - ![[figures_folder/framework.pdf]]
  - ![[figures_folder/architecture_diagram.png]]
  - ![[figures_folder/results_table.pdf]]

❌ WRONG Examples:
  - ![Description|figures_folder/file.jpg]  ← NO alt text syntax!
  - ![[Text|figures_folder/file.jpg]]  ← NO pipe character!
  - ![[figures_folder/file.jpg]]  ← Must use .pdf if file is .pdf!

**RULES:**
1. **Use EXACT filenames** from the list above - DO NOT change file extensions!
2. **Select 2-4 most important figures** - prioritize: architecture, model, results, framework, comparison
3. **Simple syntax only:** ![[figures_folder/exact_filename.ext]]
4. **Place contextually** in relevant sections (after section headers)
5. **NO alt text, NO descriptions inside brackets** - keep it clean and simple
6. If the original file is .pdf, keep .pdf - if .png, keep .png - DO NOT change extensions!
"""
