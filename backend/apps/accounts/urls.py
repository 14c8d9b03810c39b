from django.urls import path
from . import views

app_name = "accounts"

urlpatterns = [
    # Registration & profile
    path("register/", views.register_view, name="register"),
    path("me/", views.me_view, name="me"),

    # Password reset
    path("forgot-password/", views.forgot_password_view, name="forgot_password"),
    path("reset-password/", views.reset_password_view, name="reset_password"),

    # Admin user management
    path("users/", views.AdminUserListCreateView.as_view(), name="user_list"),
    path("users/<int:pk>/", views.AdminUserDetailView.as_view(), name="user_detail"),
]
