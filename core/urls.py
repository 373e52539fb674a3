from django.contrib import admin
from django.contrib.auth import views as auth_views
from django.urls import path, include

urlpatterns = [
    # 1. Django Admin Panel
    path('admin/', admin.site.urls),

    # 2. JSON API (plus the uploaded offer images)
    path('', include('accounts.urls')),
    path('', include('offers.urls')),
    path('', include('domains.urls')),

    # 3. Sign-in page for the panel (email + password)
    path('auth/login/', auth_views.LoginView.as_view(redirect_authenticated_user=True), name='login'),
    path('auth/', include('django.contrib.auth.urls')),
]
