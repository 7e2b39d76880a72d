"""
URL configuration for caffico project.
"""
from django.contrib import admin
from django.urls import path

from cafe.api.views import graphql_view
from cafe.api.webhooks import razorpay_webhook_view

urlpatterns = [
    path('admin/', admin.site.urls),
    path('graphql/', graphql_view, name='graphql'),
    path('webhooks/razorpay/', razorpay_webhook_view, name='razorpay-webhook'),
]
