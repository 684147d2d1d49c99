"""Admin registrations for organisations and business plans."""

from __future__ import annotations

from django.contrib import admin
from django.db.models import QuerySet

from plans.models import BusinessPlan, Organisation


@admin.register(Organisation)
class OrganisationAdmin(admin.ModelAdmin):
    """Admin configuration for Organisation."""

    list_display = ("name", "created_at")
    search_fields = ("name", "members__username")
    filter_horizontal = ("members",)

    def get_queryset(self, request) -> QuerySet:
        """Return only organisations the staff user belongs to, unless superuser."""

        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        return qs.filter(members=request.user)

    def save_related(self, request, form, formsets, change) -> None:  # type: ignore[override]
        """Keep the creating staff user a member of organisations they create."""

        super().save_related(request, form, formsets, change)
        if not request.user.is_superuser:
            form.instance.members.add(request.user)


@admin.register(BusinessPlan)
class BusinessPlanAdmin(admin.ModelAdmin):
    """Admin configuration for BusinessPlan, scoped by organisation membership."""

    list_display = ("name", "organisation", "updated_at")
    list_filter = ("organisation",)
    search_fields = ("name", "organisation__name")
    readonly_fields = ("created_at", "updated_at")

    def get_queryset(self, request) -> QuerySet:
        """Return plans of organisations the staff user belongs to."""

        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        return qs.filter(organisation__members=request.user)

    def formfield_for_foreignkey(self, db_field, request, **kwargs):  # type: ignore[override]
        """Limit organisation choices to the staff user's memberships."""

        if db_field.name == "organisation" and not request.user.is_superuser:
            kwargs["queryset"] = Organisation.objects.filter(members=request.user)
        return super().formfield_for_foreignkey(db_field, request, **kwargs)
