from django.urls import path
from . import views

urlpatterns = [
    # Session
    path('api/auth/login', views.api_login, name='api_login'),
    path('api/auth/logout', views.api_logout, name='api_logout'),
    path('api/auth/session', views.session, name='api_session'),
    path('api/auth/csrf', views.csrf, name='api_csrf'),

    # Own account
    path('api/user/profile', views.profile, name='user_profile'),
    path('api/user/binom-settings', views.binom_settings, name='user_binom_settings'),

    # User administration
    path('api/admin/users', views.admin_users, name='admin_users'),
    path('api/admin/users/test-binom', views.admin_test_binom, name='admin_test_binom'),
    path('api/admin/users/<int:user_id>', views.admin_user_detail, name='admin_user_detail'),
    path('api/admin/users/<int:user_id>/edit', views.admin_user_edit, name='admin_user_edit'),
    path('api/admin/users/<int:user_id>/binom', views.admin_user_binom, name='admin_user_binom'),
    path('api/admin/users/<int:user_id>/integrations', views.admin_user_integrations, name='admin_user_integrations'),
]
