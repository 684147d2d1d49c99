"""URL routes for the plans app."""

from __future__ import annotations

from django.urls import path

from plans import views

app_name = "plans"

urlpatterns = [
    path("", views.plan_list, name="plan_list"),
    path("plans/new/", views.plan_create, name="plan_create"),
    path("plans/<int:plan_id>/", views.plan_detail, name="plan_detail"),
    path("plans/<int:plan_id>/canvas/", views.canvas_api, name="canvas_api"),
    path("organisation/select/", views.select_organisation, name="select_organisation"),
]
