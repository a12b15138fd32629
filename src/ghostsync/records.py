"""Typed views of the records returned by the Ghost Content API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    # Newer CMS releases add fields; keep them rather than dropping content.
    model_config = ConfigDict(extra="allow")

    def to_data(self) -> dict[str, Any]:
        """Return the record as JSON-compatible data, including unknown fields."""

        return self.model_dump(mode="json")


class PostCount(_Record):
    posts: int = 0


class NavigationItem(_Record):
    label: str
    url: str


class Tag(_Record):
    id: str
    name: str
    slug: str
    description: str | None = None
    feature_image: str | None = None
    visibility: str | None = "public"
    meta_title: str | None = None
    meta_description: str | None = None
    og_image: str | None = None
    og_title: str | None = None
    og_description: str | None = None
    twitter_image: str | None = None
    twitter_title: str | None = None
    twitter_description: str | None = None
    codeinjection_head: str | None = None
    codeinjection_foot: str | None = None
    canonical_url: str | None = None
    accent_color: str | None = None
    url: str | None = None
    count: PostCount | None = None

    @property
    def post_count(self) -> int:
        return self.count.posts if self.count is not None else 0


class Author(_Record):
    id: str
    name: str
    slug: str
    profile_image: str | None = None
    cover_image: str | None = None
    bio: str | None = None
    website: str | None = None
    location: str | None = None
    facebook: str | None = None
    twitter: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    url: str | None = None
    count: PostCount | None = None

    @property
    def post_count(self) -> int:
        return self.count.posts if self.count is not None else 0


class ContentRecord(_Record):
    """Fields shared by posts and pages."""

    id: str
    uuid: str | None = None
    title: str
    slug: str
    html: str | None = None
    plaintext: str | None = None
    comment_id: str | None = None
    feature_image: str | None = None
    feature_image_alt: str | None = None
    feature_image_caption: str | None = None
    featured: bool = False
    visibility: str | None = "public"
    created_at: str | None = None
    updated_at: str | None = None
    published_at: str | None = None
    custom_excerpt: str | None = None
    excerpt: str | None = None
    reading_time: int | None = None
    codeinjection_head: str | None = None
    codeinjection_foot: str | None = None
    custom_template: str | None = None
    canonical_url: str | None = None
    url: str | None = None
    og_image: str | None = None
    og_title: str | None = None
    og_description: str | None = None
    twitter_image: str | None = None
    twitter_title: str | None = None
    twitter_description: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    tags: list[Tag] = Field(default_factory=list)
    authors: list[Author] = Field(default_factory=list)
    primary_tag: Tag | None = None
    primary_author: Author | None = None


class Post(ContentRecord):
    pass


class Page(ContentRecord):
    pass


class Settings(_Record):
    """The singleton site settings object; the API gives it no id."""

    title: str | None = None
    description: str | None = None
    logo: str | None = None
    icon: str | None = None
    accent_color: str | None = None
    cover_image: str | None = None
    facebook: str | None = None
    twitter: str | None = None
    lang: str | None = None
    locale: str | None = None
    timezone: str | None = None
    codeinjection_head: str | None = None
    codeinjection_foot: str | None = None
    navigation: list[NavigationItem] = Field(default_factory=list)
    secondary_navigation: list[NavigationItem] = Field(default_factory=list)
    meta_title: str | None = None
    meta_description: str | None = None
    og_image: str | None = None
    og_title: str | None = None
    og_description: str | None = None
    twitter_image: str | None = None
    twitter_title: str | None = None
    twitter_description: str | None = None
    url: str | None = None


RECORD_TYPES: dict[str, type[_Record]] = {
    "posts": Post,
    "pages": Page,
    "tags": Tag,
    "authors": Author,
    "settings": Settings,
}
