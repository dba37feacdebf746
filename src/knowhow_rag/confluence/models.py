"""
Confluence REST Response Models

Only the fields the ingestion pipeline reads are modelled; everything else in
the payload is ignored.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Label(_Lenient):
    name: Optional[str] = None
    prefix: Optional[str] = None


class Labels(_Lenient):
    results: Optional[List[Label]] = None


class ContentMetadata(_Lenient):
    media_type: Optional[str] = Field(default=None, alias="mediaType")
    labels: Optional[Labels] = None


class Storage(_Lenient):
    value: Optional[str] = None


class Body(_Lenient):
    storage: Optional[Storage] = None


class Links(_Lenient):
    webui: Optional[str] = None
    download: Optional[str] = None


class ContentResult(_Lenient):
    id: str
    title: str = ""
    body: Optional[Body] = None
    links: Optional[Links] = Field(default=None, alias="_links")
    metadata: Optional[ContentMetadata] = None

    def label_names(self) -> List[str]:
        if not self.metadata or not self.metadata.labels or not self.metadata.labels.results:
            return []
        return [label.name for label in self.metadata.labels.results if label.name]

    def storage_value(self) -> Optional[str]:
        if self.body is None or self.body.storage is None:
            return None
        return self.body.storage.value


class ContentResponse(_Lenient):
    results: List[ContentResult] = Field(default_factory=list)
