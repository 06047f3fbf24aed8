# app/schemas/content.py

import re
from enum import Enum
from typing import Any, Dict, List, Optional

import markdown
from pydantic import BaseModel, ConfigDict, Field, computed_field


class Category(str, Enum):
    GENERAL = "general"
    COMPARISON = "comparison"
    COST_FOCUSED = "costFocused"
    LOCATION_BASED = "locationBased"
    HOW_TO = "howTo"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return CATEGORY_DISPLAY_NAMES[self]

    @classmethod
    def lookup(cls, key: Any) -> Optional["Category"]:
        """Resolve a wire key or display name. Returns None for unknown keys."""
        if isinstance(key, cls):
            return key
        if not isinstance(key, str):
            return None
        return _CATEGORY_BY_KEY.get(key.strip().lower())


CATEGORY_DISPLAY_NAMES: Dict[Category, str] = {
    Category.GENERAL: "General",
    Category.COMPARISON: "Comparison",
    Category.COST_FOCUSED: "Cost-Focused",
    Category.LOCATION_BASED: "Location-Based",
    Category.HOW_TO: "How-To",
    Category.OTHER: "Other",
}

# Older responses keyed topics by display name ("Cost-Focused"), newer ones by camelCase key
_CATEGORY_BY_KEY: Dict[str, Category] = {}
for _category, _name in CATEGORY_DISPLAY_NAMES.items():
    _CATEGORY_BY_KEY[_category.value.lower()] = _category
    _CATEGORY_BY_KEY[_name.lower()] = _category


class ContextKind(str, Enum):
    DESCRIPTION = "description"
    URL = "url"


class Step(str, Enum):
    INTRO = "intro"
    CONTEXT = "context"
    PRODUCT_AND_RESULTS = "product_and_results"


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    response_schema: Optional[Dict[str, Any]] = None


class TopicSet(BaseModel):
    """Topics grouped by category, in the order the endpoint returned them."""

    categories: Dict[Category, List[str]] = Field(default_factory=dict)

    @property
    def default_category(self) -> Optional[Category]:
        return next(iter(self.categories), None)

    def has(self, category: Category) -> bool:
        return category in self.categories

    def topics_for(self, category: Category) -> List[str]:
        return self.categories.get(category, [])

    def display_tabs(self) -> List[Dict[str, str]]:
        return [{"key": c.value, "label": c.display_name} for c in self.categories]


def render_markdown(text: str) -> str:
    """Render Markdown to HTML. Same input always yields the same output."""
    return markdown.markdown(text, extensions=["extra", "sane_lists"])


_META_DESCRIPTION_RE = re.compile(
    r"^#{1,6}\s*Meta Description\s*$\n+(.*?)(?=^#{1,6}\s|\Z)",
    re.MULTILINE | re.DOTALL | re.IGNORECASE,
)
_KEYWORDS_RE = re.compile(
    r"^#{1,6}\s*Suggested Keywords\s*$\n+(.*?)(?=^#{1,6}\s|\Z)",
    re.MULTILINE | re.DOTALL | re.IGNORECASE,
)


class ArticleResult(BaseModel):
    markdown_text: str

    @computed_field
    @property
    def html(self) -> str:
        return render_markdown(self.markdown_text)

    @computed_field
    @property
    def meta_description(self) -> Optional[str]:
        match = _META_DESCRIPTION_RE.search(self.markdown_text)
        if not match:
            return None
        return match.group(1).strip() or None

    @computed_field
    @property
    def suggested_keywords(self) -> List[str]:
        match = _KEYWORDS_RE.search(self.markdown_text)
        if not match:
            return []
        raw = match.group(1).replace("\n", ",")
        return [kw.strip(" -*\t") for kw in raw.split(",") if kw.strip(" -*\t")]


class SessionState(BaseModel):
    session_id: str
    step: Step = Step.INTRO
    business_context: str = ""
    context_kind: ContextKind = ContextKind.DESCRIPTION
    product_name: str = ""
    topics: Optional[TopicSet] = None
    selected_category: Optional[Category] = None
    selected_topic: Optional[str] = None
    article: Optional[ArticleResult] = None
    error: Optional[str] = None
    is_generating_topics: bool = False
    is_generating_article: bool = False
    topics_status: Optional[str] = None
    article_status: Optional[str] = None
    # Bumped on every topics run; an article started before the bump is stale
    topics_run: int = 0


# -------------------------------------------------
# Request bodies
# -------------------------------------------------
class ContextKindRequest(BaseModel):
    context_kind: ContextKind


class ContextRequest(BaseModel):
    business_context: str = ""
    context_kind: Optional[ContextKind] = None


class TopicsRequest(BaseModel):
    product_name: str = ""


class CategoryRequest(BaseModel):
    category: str


class ArticleRequest(BaseModel):
    topic: str
