# URLs for scanner app
from django.urls import path
from .views import scanner_page

urlpatterns = [
	path('<str:token>/', scanner_page, name='scanner_page'),
]
