"""
Tests for the Slack message template store.
"""

from chronicle.models.templates import MessageTemplate
from chronicle.storage.template_store import TemplateStore, load_default_templates


def test_load_default_templates():
    templates = {t.id: t for t in load_default_templates()}

    assert set(templates) == {"approval-request", "product-update-notification"}
    assert templates["approval-request"].channel == "#content-approvals"
    assert "{contentTitle}" in templates["approval-request"].message_template
    assert "{whatsNewSection}" in templates["product-update-notification"].message_template


def test_defaults_are_seeded_on_first_read(template_store):
    templates = template_store.list()

    assert [t.id for t in templates] == ["approval-request", "product-update-notification"]
    assert all(t.enabled for t in templates)


def test_channel_overrides_apply_to_seeded_defaults(database):
    store = TemplateStore(database, channels={"approval-request": "#qa-approvals", "unused": ""})

    assert store.get("approval-request").channel == "#qa-approvals"
    assert store.get("product-update-notification").channel == "#product-updates"


def test_seeding_does_not_overwrite_edits(database, template_store):
    existing = template_store.get("approval-request")
    template_store.save(existing.model_copy(update={"message_template": "Custom {contentTitle}"}))

    added = TemplateStore(database).seed_defaults()

    assert added == 0
    assert template_store.get("approval-request").message_template == "Custom {contentTitle}"


def test_save_inserts_new_template(template_store):
    saved = template_store.save(
        MessageTemplate(
            id="weekly-digest",
            name="Weekly Digest",
            channel="#general",
            message_template="This week: {contentTitle}",
        )
    )

    assert saved.created_at is not None
    assert template_store.get("weekly-digest").channel == "#general"
    assert len(template_store.list()) == 3


def test_save_updates_existing_template(template_store):
    existing = template_store.get("product-update-notification")

    template_store.save(existing.model_copy(update={"enabled": False, "channel": "#releases"}))

    updated = template_store.get("product-update-notification")
    assert updated.enabled is False
    assert updated.channel == "#releases"
    assert updated.message_template == existing.message_template


def test_get_unknown_template(template_store):
    assert template_store.get("does-not-exist") is None
