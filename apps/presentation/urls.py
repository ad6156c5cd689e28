from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DocumentViewSet, UserViewSet, register, login, me, google_verify

router = DefaultRouter()
router.register(r'documents', DocumentViewSet, basename='document')
router.register(r'users', UserViewSet, basename='user')

urlpatterns = [
    path('auth/register/', register, name='auth-register'),
    path('auth/login/', login, name='auth-login'),
    path('auth/me/', me, name='auth-me'),
    path('auth/google-verify/', google_verify, name='auth-google-verify'),
    path('', include(router.urls)),
]
