"""Topic service - loads the subject catalog from YAML and validates topic ids."""

from pathlib import Path

import yaml

from peertutor.errors import ValidationError
from peertutor.schemas.topic import Topic, TopicCatalog

CATALOG_PATH = Path(__file__).parent.parent / "data" / "subjects.yaml"


class TopicService:
    def __init__(self, path: Path = CATALOG_PATH):
        self.path = path
        self._catalog: TopicCatalog | None = None

    def load_catalog(self) -> TopicCatalog:
        """Load the catalog once; later calls return the cached copy."""
        if self._catalog is not None:
            return self._catalog

        if not self.path.exists():
            raise FileNotFoundError(f"Topic catalog not found: {self.path}")

        with open(self.path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)

        self._catalog = TopicCatalog(
            categories=raw.get("categories", []),
            subjects=[Topic(**entry) for entry in raw.get("subjects", [])],
        )
        return self._catalog

    def list_topics(self, category: str | None = None) -> list[Topic]:
        subjects = self.load_catalog().subjects
        if category is None:
            return list(subjects)
        return [t for t in subjects if t.category == category]

    def categories(self) -> list[str]:
        return list(self.load_catalog().categories)

    def get_topic(self, topic_id: str) -> Topic | None:
        for topic in self.load_catalog().subjects:
            if topic.id == topic_id:
                return topic
        return None

    def validate_topics(self, topic_ids: list[str], field: str = "Topics") -> list[str]:
        """Return the ids de-duplicated in order, or raise on an unknown id."""
        known = {t.id for t in self.load_catalog().subjects}
        unknown = [t for t in topic_ids if t not in known]
        if unknown:
            raise ValidationError(f"{field} contain unknown topics: {', '.join(unknown)}")
        return list(dict.fromkeys(topic_ids))


topic_service = TopicService()
