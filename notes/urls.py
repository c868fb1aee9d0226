from django.urls import path
from .views import NoteBoardView, NoteDetailView, NoteMoveView, NoteToggleView, StorageTestView

urlpatterns = [
    path("", NoteBoardView.as_view()),
    path("storage-test/", StorageTestView.as_view()),
    path("<str:note_id>/", NoteDetailView.as_view()),
    path("<str:note_id>/toggle/", NoteToggleView.as_view()),
    path("<str:note_id>/move/", NoteMoveView.as_view()),
]
