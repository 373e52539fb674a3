from django.urls import path
from . import views

urlpatterns = [
    # Offers
    path('api/offers', views.offers, name='offers'),
    path('api/offers/reorder', views.offers_reorder, name='offers_reorder'),
    path('api/offers/<int:offer_id>', views.offer_detail, name='offer_detail'),
    path('api/offers/<int:offer_id>/duplicate', views.offer_duplicate, name='offer_duplicate'),
    path('api/offers/<int:offer_id>/landings', views.offer_landings, name='offer_landings'),
    path('api/offers/<int:offer_id>/image', views.offer_image, name='offer_image'),

    # Landings
    path('api/landings/reorder', views.landings_reorder, name='landings_reorder'),
    path('api/landings/<int:landing_id>', views.landing_detail, name='landing_detail'),

    # Reference tables
    path('api/references', views.references, name='references'),
    path('api/admin/verticals', views.reference_collection, {'table': 'verticals'}, name='admin_verticals'),
    path('api/admin/verticals/<int:pk>', views.reference_detail, {'table': 'verticals'}, name='admin_vertical'),
    path('api/admin/offer-types', views.reference_collection, {'table': 'offer-types'}, name='admin_offer_types'),
    path('api/admin/offer-types/<int:pk>', views.reference_detail, {'table': 'offer-types'}, name='admin_offer_type'),
    path('api/admin/geos', views.reference_collection, {'table': 'geos'}, name='admin_geos'),
    path('api/admin/geos/<int:pk>', views.reference_detail, {'table': 'geos'}, name='admin_geo'),
    path('api/admin/languages', views.reference_collection, {'table': 'languages'}, name='admin_languages'),
    path('api/admin/languages/<int:pk>', views.reference_detail, {'table': 'languages'}, name='admin_language'),
    path('api/admin/partners', views.reference_collection, {'table': 'partners'}, name='admin_partners'),
    path('api/admin/partners/<int:pk>', views.reference_detail, {'table': 'partners'}, name='admin_partner'),

    # Audit trail
    path('api/audit-logs', views.audit_logs, name='audit_logs'),

    # Uploaded offer images
    path('uploads/offers/<str:filename>', views.serve_offer_image, name='offer_image_file'),
]
