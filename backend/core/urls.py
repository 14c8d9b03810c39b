from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenRefreshView

from apps.accounts.jwt import AdminLoginView, CustomerLoginView

urlpatterns = [
    path("admin/", admin.site.urls),

    # Authentication
    path("api/auth/login/", CustomerLoginView.as_view(), name="jwt_login"),
    path("api/auth/admin/login/", AdminLoginView.as_view(), name="jwt_admin_login"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="jwt_refresh"),

    path("api/accounts/", include("apps.accounts.urls")),
    path("api/products/", include("apps.products.urls")),
    path("api/", include("apps.orders.urls")),
    path("api/feedback/", include("apps.feedback.urls")),

    # API schema
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
]
