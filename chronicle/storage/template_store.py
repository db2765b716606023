"""
Message Template Store

CRUD for Slack message templates. The bundled defaults are seeded on first
access so a fresh database can send notifications immediately.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from sqlalchemy import select

from chronicle.models.templates import MessageTemplate
from chronicle.storage.database import Database
from chronicle.storage.tables import MessageTemplateRecord

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_FILE = (
    Path(__file__).parent.parent / "integrations" / "slack" / "templates" / "default_templates.yaml"
)


def load_default_templates(path: Optional[Path] = None) -> List[MessageTemplate]:
    """
    Load the bundled default templates from YAML.

    Args:
        path: Override for the defaults file

    Returns:
        List of MessageTemplate
    """
    path = path or DEFAULT_TEMPLATES_FILE
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return [MessageTemplate(**item) for item in data.get("templates", [])]


class TemplateStore:
    """Persistence for MessageTemplate."""

    def __init__(
        self,
        database: Database,
        defaults_file: Optional[Path] = None,
        channels: Optional[Dict[str, str]] = None,
    ):
        self.database = database
        self.defaults_file = defaults_file
        # Per-template channel overrides applied when defaults are seeded
        self.channels = {k: v for k, v in (channels or {}).items() if v}
        self._seeded = False

    def seed_defaults(self) -> int:
        """Insert any default template that is not stored yet. Returns how many were added."""
        added = 0
        with self.database.session() as session:
            for template in load_default_templates(self.defaults_file):
                if template.id in self.channels:
                    template.channel = self.channels[template.id]
                if session.get(MessageTemplateRecord, template.id) is None:
                    session.add(self._to_record(template))
                    added += 1
        self._seeded = True
        if added:
            logger.info(f"Seeded {added} default Slack templates")
        return added

    def list(self) -> List[MessageTemplate]:
        self._ensure_seeded()
        with self.database.session() as session:
            records = session.scalars(
                select(MessageTemplateRecord).order_by(MessageTemplateRecord.id)
            ).all()
            return [MessageTemplate.model_validate(r) for r in records]

    def get(self, template_id: str) -> Optional[MessageTemplate]:
        self._ensure_seeded()
        with self.database.session() as session:
            record = session.get(MessageTemplateRecord, template_id)
            return MessageTemplate.model_validate(record) if record else None

    def save(self, template: MessageTemplate) -> MessageTemplate:
        """Insert or update a template by id."""
        self._ensure_seeded()
        now = datetime.now(timezone.utc)
        with self.database.session() as session:
            record = session.get(MessageTemplateRecord, template.id)
            if record is None:
                record = self._to_record(template)
                record.created_at = now
                session.add(record)
            else:
                record.name = template.name
                record.description = template.description
                record.channel = template.channel
                record.message_template = template.message_template
                record.enabled = template.enabled
                record.trigger_event = template.trigger_event
                record.category = template.category
            record.updated_at = now
            session.flush()
            saved = MessageTemplate.model_validate(record)

        logger.info(f"Saved Slack template {template.id}")
        return saved

    def _ensure_seeded(self) -> None:
        if not self._seeded:
            self.seed_defaults()

    @staticmethod
    def _to_record(template: MessageTemplate) -> MessageTemplateRecord:
        now = datetime.now(timezone.utc)
        return MessageTemplateRecord(
            id=template.id,
            name=template.name,
            description=template.description,
            channel=template.channel,
            message_template=template.message_template,
            enabled=template.enabled,
            trigger_event=template.trigger_event,
            category=template.category,
            created_at=now,
            updated_at=now,
        )
