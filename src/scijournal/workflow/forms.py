"""Form state shared by the wizard stages and the draft snapshots."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from scijournal.models import Article, ArticleAuthor, WireModel
from scijournal.services.uploads import LocalFile
from scijournal.utils import split_keywords


class AuthorInput(WireModel):
    """An author as typed into the authors stage, before it has an id."""

    full_name: str = ""
    email: str = ""
    institution: str = ""
    country: str = ""
    is_corresponding: bool = False
    has_account: bool = False

    @classmethod
    def from_author(cls, author: ArticleAuthor) -> "AuthorInput":
        return cls(
            full_name=author.full_name,
            email=author.email,
            institution=author.institution,
            country=author.country,
            is_corresponding=author.is_corresponding,
            has_account=author.has_account,
        )


@dataclass(slots=True)
class SubmissionForm:
    title_prefix: str = ""
    title: str = ""
    subtitle: str = ""
    abstract: str = ""
    keywords: str = ""
    article_language: str = "vi"
    field: str = ""
    secondary_fields: list[str] = dataclasses.field(default_factory=list)
    authors: list[AuthorInput] = dataclasses.field(default_factory=list)
    submitter_note: str = ""
    # Staged files; never part of a draft.
    thumbnail: LocalFile | None = None
    manuscript: LocalFile | None = None
    attachments: list[LocalFile] = dataclasses.field(default_factory=list)

    @classmethod
    def from_article(cls, article: Article) -> "SubmissionForm":
        return cls(
            title_prefix=article.title_prefix or "",
            title=article.title,
            subtitle=article.subtitle or "",
            abstract=article.abstract,
            keywords=", ".join(article.keywords),
            article_language=article.article_language,
            field=article.field_id or "",
            secondary_fields=list(article.secondary_field_ids),
            authors=[
                AuthorInput.from_author(author)
                for author in article.authors
                if isinstance(author, ArticleAuthor)
            ],
            submitter_note=article.submitter_note or "",
        )

    def is_empty(self) -> bool:
        """True while there is nothing worth autosaving."""
        has_author_name = any(author.full_name.strip() for author in self.authors)
        return not (self.title.strip() or self.abstract.strip() or self.keywords.strip() or has_author_name)

    def reset(self) -> None:
        blank = SubmissionForm()
        for name in self.__slots__:
            setattr(self, name, getattr(blank, name))

    def to_payload(self) -> dict[str, Any]:
        """Article fields as the API expects them; keywords become a list."""
        return {
            "titlePrefix": self.title_prefix,
            "title": self.title,
            "subtitle": self.subtitle,
            "abstract": self.abstract,
            "keywords": split_keywords(self.keywords),
            "articleLanguage": self.article_language,
            "field": self.field,
            "secondaryFields": list(self.secondary_fields),
            "authors": [author.to_payload(exclude={"has_account"}) for author in self.authors],
            "submitterNote": self.submitter_note,
        }
