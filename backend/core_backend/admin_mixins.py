"""
Admin mixin for models using SoftDeleteMixin.

Archived rows stay visible in the admin and the bulk delete action is
replaced by archive/unarchive actions, since orders and stock history keep
pointing at these records.
"""

from django.contrib import admin, messages


class ArchivingAdminMixin:

    def get_queryset(self, request):
        # Admins see archived rows too
        return self.model.all_objects.all()

    def get_list_filter(self, request):
        list_filter = list(super().get_list_filter(request))
        if "is_active" not in list_filter:
            list_filter.insert(0, "is_active")
        return list_filter

    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    @admin.action(description="Archive selected items")
    def archive_selected(self, request, queryset):
        count = queryset.filter(is_active=True).archive()
        if not count:
            self.message_user(request, "No active records selected.", level=messages.WARNING)
            return
        self.message_user(
            request,
            f"Archived {count} {queryset.model._meta.verbose_name_plural}.",
            level=messages.SUCCESS,
        )

    @admin.action(description="Unarchive selected items")
    def unarchive_selected(self, request, queryset):
        count = queryset.filter(is_active=False).unarchive()
        self.message_user(
            request,
            f"Restored {count} {queryset.model._meta.verbose_name_plural}.",
            level=messages.SUCCESS,
        )

    actions = ["archive_selected", "unarchive_selected"]
