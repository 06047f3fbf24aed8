import re

from app.schemas.content import CATEGORY_DISPLAY_NAMES, ContextKind

TOPIC_PROMPT = """You are an expert SEO content strategist and blog topic planner.

For the product "{product_name}", generate 6-7 distinct buyer-intent blog post topics
for EACH of the following categories:

{category_lines}

------------------------------------------------------------
RULES
------------------------------------------------------------
• Every topic must be a ready-to-use blog post title.
• Topics must target buyers who are researching or about to purchase "{product_name}".
• For the "locationBased" (Location-Based) category you MUST include a literal placeholder
  such as '[City]' or '[Region]' in every topic, e.g. "Where to Buy {product_name} in [City]".
• Do not repeat a topic across categories.
• No clickbait, hype, or invented promises.

------------------------------------------------------------
OUTPUT FORMAT (JSON ONLY)
------------------------------------------------------------
Return ONLY a JSON object with exactly these keys: {category_keys}.
Each key maps to an array of topic strings.
"""

ARTICLE_PROMPT = """You are an expert SEO copywriter writing for a business. {business_info}
Your task is to write a comprehensive, SEO-optimized blog post for the product "{product_name}" about the topic: "{topic}".

The key angle of the article is to explain how your business (the one described above) helps the reader with this product. Weave mentions of the business's value proposition and how it helps the customer naturally into the article. Do not sound overly promotional.

Structure the content logically for maximum readability and engagement:
- An H1 title (the topic itself).
- Multiple H2 and H3 subheadings to break up the text.
- Short, easy-to-read paragraphs. Each paragraph should ideally be no more than 3-4 sentences.
- Break down complex ideas using bullet points or numbered lists where appropriate.
- Keep sentences concise and direct. Avoid long, complex sentence structures.
- Use ample white space between paragraphs and headings in the Markdown output to make the content easy to scan.
- A strong concluding summary with a call-to-action. The call-to-action MUST be specific and highly relevant to the business described. For example, if the business is a coffee roaster selling beans, a good CTA is "Explore our ethically sourced single-origin roasts today." If it's a SaaS for project management, a good CTA is "Start your free 14-day trial and streamline your team's workflow."

The article should be engaging, informative, and at least {min_words} words. Format the entire output in Markdown.

---

After the main article, add the following sections, each with exactly this heading:

### Meta Description
A concise and compelling summary (155-160 characters) for search engine results.

### Suggested Keywords
A comma-separated list of 5-7 relevant keywords for this blog post.
"""

ARTICLE_MIN_WORDS = 800

# Sent as the response_format schema with the topic request
TOPIC_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        category.value: {
            "type": "array",
            "description": f"{name} blog post topics.",
            "items": {"type": "string"},
        }
        for category, name in CATEGORY_DISPLAY_NAMES.items()
    },
    "required": [category.value for category in CATEGORY_DISPLAY_NAMES],
    "additionalProperties": False,
}


_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def _fill(template: str, values: dict) -> str:
    # Single pass: text substituted in is never scanned for placeholders again
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def build_topic_prompt(product_name: str) -> str:
    category_lines = "\n".join(
        f'• "{category.value}" ({name})' for category, name in CATEGORY_DISPLAY_NAMES.items()
    )
    category_keys = ", ".join(f'"{category.value}"' for category in CATEGORY_DISPLAY_NAMES)
    return _fill(TOPIC_PROMPT, {
        "category_lines": category_lines,
        "category_keys": category_keys,
        "product_name": product_name,
    })


def _business_info(business_context: str, context_kind: ContextKind) -> str:
    if ContextKind(context_kind) == ContextKind.URL:
        return f"The business's website is {business_context}."
    return f'The business is described as: "{business_context}".'


def build_article_prompt(
    product_name: str,
    business_context: str,
    context_kind: ContextKind,
    topic: str,
) -> str:
    return _fill(ARTICLE_PROMPT, {
        "min_words": str(ARTICLE_MIN_WORDS),
        "topic": topic,
        "product_name": product_name,
        "business_info": _business_info(business_context, context_kind),
    })
