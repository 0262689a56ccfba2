"""Email templates and layouts listing."""

from sqlalchemy.orm import Query

from datatable import Action, BulkAction, Column, DataTable, Filter, register_table
from models.email_template import EmailTemplate, TemplateStatus, TemplateType
from services.email_templates import service as template_service

STATUS_VARIANTS = {
    TemplateStatus.DRAFT.value: "warning",
    TemplateStatus.PUBLISHED.value: "success",
    TemplateStatus.ARCHIVED.value: "neutral",
}


@register_table
class EmailTemplateTable(DataTable):
    name = "email_templates"
    model = EmailTemplate
    permission = "view email_templates"
    default_sort_by = "name"

    def base_query(self) -> Query:
        return (
            self.db.query(EmailTemplate)
            .filter(EmailTemplate.deleted_at.is_(None))
            .order_by(EmailTemplate.name)
        )

    def columns(self):
        return [
            Column.make("Name").sortable().searchable(),
            Column.make("Description").searchable(),
            Column.make("Type").sortable(),
            Column.make("Status")
                .sortable()
                .type("badge", {"variants": STATUS_VARIANTS}),
            Column.make("Layout", "is_layout").format(lambda value, row: "Layout" if value else "Template"),
            Column.make("Locales", "locales").format(lambda value, row: ", ".join(value)),
        ]

    def filters(self):
        return [
            Filter.make("status", "Status").options({
                TemplateStatus.DRAFT.value: "Draft",
                TemplateStatus.PUBLISHED.value: "Published",
                TemplateStatus.ARCHIVED.value: "Archived",
            }),
            Filter.make("type", "Type").type("multiselect").options({
                TemplateType.TRANSACTIONAL.value: "Transactional",
                TemplateType.MARKETING.value: "Marketing",
                TemplateType.SYSTEM.value: "System",
            }),
            Filter.make("is_layout", "Layouts only")
                .type("boolean")
                .options({"1": "Layouts", "0": "Templates"}),
        ]

    def row_actions(self):
        return [
            Action.make("edit", "Edit")
                .icon("pencil")
                .route(lambda template: f"/email-templates/{template.id}/edit")
                .can("edit email_templates"),
            Action.make("preview", "Preview")
                .icon("eye")
                .modal("email-templates.preview", lambda template: {"template_id": str(template.id)})
                .can("view email_templates"),
            Action.make("publish", "Publish")
                .icon("paper-airplane")
                .execute(self._publish)
                .show(lambda template: template.status != TemplateStatus.PUBLISHED.value)
                .can("publish email_templates"),
            Action.make("archive", "Archive")
                .icon("archive-box")
                .execute(self._archive)
                .show(lambda template: template.status != TemplateStatus.ARCHIVED.value and not template.is_system)
                .confirm(lambda template: f"Archive {template.name}? It will no longer be sent.")
                .can("edit email_templates"),
            Action.make("delete", "Delete")
                .icon("trash")
                .variant("danger")
                .execute(self._delete)
                .show(lambda template: not template.is_system)
                .confirm_view("email-templates.confirm-delete", {"title": "Delete template"})
                .can("delete email_templates"),
        ]

    def bulk_actions(self):
        return [
            BulkAction.make("archive", "Archive")
                .icon("archive-box")
                .execute(self._bulk_archive)
                .confirm(lambda templates: f"Archive {len(templates)} templates?")
                .can("edit email_templates"),
        ]

    def row_click(self, row):
        return self.find_row_action("edit")

    def _publish(self, template):
        template_service.publish(self.db, template)
        self.notify("Template published", content=template.name)

    def _archive(self, template):
        template_service.archive(self.db, template)
        self.notify("Template archived", content=template.name)

    def _delete(self, template):
        template_service.delete_template(self.db, template)
        self.notify("Template deleted", content=template.name)

    def _bulk_archive(self, templates):
        targets = [template for template in templates if not template.is_system]
        for template in targets:
            template_service.archive(self.db, template)
        self.notify(f"{len(targets)} templates archived")
        return len(targets)
