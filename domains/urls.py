from django.urls import path
from . import views

urlpatterns = [
    # Signed-in user's domains
    path('api/my-domains', views.my_domains, name='my_domains'),
    path('api/domain-requests', views.domain_requests, name='domain_requests'),
    path('api/domains/<int:domain_id>', views.domain_delete, name='domain_delete'),
    path('api/domains/<int:domain_id>/archive', views.domain_archive, name='domain_archive'),
    path('api/domains/<int:domain_id>/note', views.domain_note, name='domain_note'),

    # Domain pool administration
    path('api/admin/domains', views.admin_domains, name='admin_domains'),
    path('api/admin/domains/bulk', views.admin_domains_bulk, name='admin_domains_bulk'),
    path('api/admin/domains/bulk-cost', views.admin_domains_bulk_cost, name='admin_domains_bulk_cost'),
    path('api/admin/domains/<int:domain_id>', views.admin_domain_delete, name='admin_domain_delete'),
    path('api/admin/domains/<int:domain_id>/cost', views.admin_domain_cost, name='admin_domain_cost'),
    path('api/admin/domain-requests', views.admin_domain_requests, name='admin_domain_requests'),
    path('api/admin/domain-requests/<int:request_id>', views.admin_domain_request_detail, name='admin_domain_request_detail'),
    path('api/admin/cloudflare/setup', views.cloudflare_setup, name='cloudflare_setup'),
]
