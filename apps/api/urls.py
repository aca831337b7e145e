# URLs for api app
from django.urls import path
from . import views

urlpatterns = [
	path('verify/short-id', views.verify_short_id, name='verify_short_id'),
	path('verify/code', views.verify_code, name='verify_code'),
	path('verify/qr', views.verify_qr, name='verify_qr'),
	path('verifications/feed', views.verification_feed, name='verification_feed'),
	path('meal-logs', views.meal_logs, name='meal_logs'),
	path('students/<int:short_id>/snapshot', views.student_snapshot, name='student_snapshot'),
	path('students/<int:short_id>/codes', views.student_codes, name='student_codes'),
	path('settings/meal-windows', views.meal_windows, name='meal_windows'),
]
