from django.urls import path
from .views import AuthApiIndexView, LogoutView, SessionProfileView, VerifyIdentityView

urlpatterns = [
    path("", AuthApiIndexView.as_view()),
    path("verify/", VerifyIdentityView.as_view()),
    path("logout/", LogoutView.as_view()),
    path("me/", SessionProfileView.as_view()),
]
