import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsNoteOwner
from . import ordering
from .board import BoardResult
from .serializers import BoardSerializer, MoveSerializer, NoteEditSerializer
from .services import open_board

logger = logging.getLogger(__name__)

_DIRECTIONS = {"up": ordering.UP, "down": ordering.DOWN}


class NoteBoardView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        with open_board(request.user) as board:
            snapshot = board.search(request.query_params.get("tags", ""))
            return Response(BoardSerializer(BoardResult(snapshot=snapshot)).data)

    def post(self, request):
        serializer = NoteEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with open_board(request.user) as board:
            result = board.add(serializer.validated_data)
            return Response(BoardSerializer(result).data, status=status.HTTP_201_CREATED)


class OwnedNoteView(APIView):
    permission_classes = [IsAuthenticated, IsNoteOwner]

    def get_note(self, board, note_id):
        note = board.get(note_id)
        # Extra security: the store already filters by owner
        self.check_object_permissions(self.request, note)
        return note


class NoteDetailView(OwnedNoteView):
    def patch(self, request, note_id):
        serializer = NoteEditSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        with open_board(request.user) as board:
            self.get_note(board, note_id)
            result = board.update(note_id, serializer.validated_data)
            return Response(BoardSerializer(result).data)

    def delete(self, request, note_id):
        with open_board(request.user) as board:
            self.get_note(board, note_id)
            result = board.delete(note_id)
            return Response(BoardSerializer(result).data)


class NoteToggleView(OwnedNoteView):
    def post(self, request, note_id):
        with open_board(request.user) as board:
            self.get_note(board, note_id)
            result = board.toggle(note_id)
            return Response(BoardSerializer(result).data)


class NoteMoveView(OwnedNoteView):
    def post(self, request, note_id):
        serializer = MoveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        direction = _DIRECTIONS[serializer.validated_data["direction"]]
        with open_board(request.user) as board:
            self.get_note(board, note_id)
            result = board.move(note_id, direction)
            return Response(BoardSerializer(result).data)


class StorageTestView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        with open_board(request.user) as board:
            result = board.store.test()
        if not result.success:
            logger.warning("Storage connectivity check failed: %s", result.message)
        return Response(
            {"success": result.success, "message": result.message, "notes": len(board.notes)},
            status=status.HTTP_200_OK if result.success else status.HTTP_502_BAD_GATEWAY,
        )
