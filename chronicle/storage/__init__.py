"""
Storage layer: SQLAlchemy database, changelog entries and message templates.
"""

from chronicle.storage.database import Base, Database
from chronicle.storage.changelog_store import ChangelogStore
from chronicle.storage.template_store import TemplateStore, load_default_templates

__all__ = ["Base", "Database", "ChangelogStore", "TemplateStore", "load_default_templates"]
