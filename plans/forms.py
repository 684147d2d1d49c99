"""Forms for business plan workflows."""

from __future__ import annotations

from django import forms
from django.db.models import QuerySet

from plans.models import BusinessPlan, Organisation

_TEXTAREA = forms.Textarea(attrs={"rows": 3, "cols": 80})


class BusinessPlanForm(forms.ModelForm):
    """Create or edit a business plan's text.

    The strategy canvas is not a form field. It is written only by the canvas
    editor's commit callback, so saving the form never replaces a canvas edit
    made after the page loaded.
    """

    class Meta:
        model = BusinessPlan
        fields = (
            "name",
            "problem",
            "unique_selling_point",
            "target_market",
            "key_metrics",
            "identified_operational_challenges",
            "risks_and_plan_b",
            "vision_3_5_years",
            "priorities_next_90_days",
        )
        labels = {
            "unique_selling_point": "Unique selling point",
            "identified_operational_challenges": "Identified operational challenges",
            "risks_and_plan_b": "Risks and plan B",
            "vision_3_5_years": "Vision (3-5 years)",
            "priorities_next_90_days": "Priorities (next 90 days)",
        }
        widgets = {
            "problem": _TEXTAREA,
            "unique_selling_point": _TEXTAREA,
            "target_market": _TEXTAREA,
            "key_metrics": _TEXTAREA,
            "identified_operational_challenges": _TEXTAREA,
            "risks_and_plan_b": _TEXTAREA,
            "vision_3_5_years": _TEXTAREA,
            "priorities_next_90_days": _TEXTAREA,
        }

    def clean_name(self) -> str:
        """Require a non-blank plan name."""

        name = (self.cleaned_data.get("name") or "").strip()
        if not name:
            raise forms.ValidationError("Give the plan a name.")
        return name


class OrganisationSelectForm(forms.Form):
    """Choose the organisation to work in among the user's memberships."""

    organisation = forms.ModelChoiceField(queryset=Organisation.objects.none(), empty_label=None)
    next = forms.CharField(required=False, widget=forms.HiddenInput)

    def __init__(self, *args, organisations: QuerySet[Organisation], **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.fields["organisation"].queryset = organisations
