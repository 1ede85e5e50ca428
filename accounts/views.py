from django.shortcuts import get_object_or_404
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes, throttle_classes
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle

from .models import User
from .permissions import IsWorkspaceAdmin
from .serializers import (
    LoginSerializer, UserCreateSerializer, UserSerializer, UserSummarySerializer
)
from .services import actor_service, auth_service


class AuthenticationThrottle(AnonRateThrottle):
    """Strict rate limiting for authentication endpoints"""
    scope = 'authentication'


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
@throttle_classes([AuthenticationThrottle])
def login_view(request):
    """
    Exchange username and password for a token pair

    POST /api/auth/login/
    {"username": "...", "password": "..."}
    """
    serializer = LoginSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'message': 'Invalid credentials'}, status=status.HTTP_400_BAD_REQUEST)

    user = serializer.validated_data['user']
    tokens = auth_service.login(user)
    return Response({**tokens, 'user': UserSerializer(user).data})


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def me_view(request):
    """Current actor profile"""
    user = get_object_or_404(User, id=request.user.id)
    return Response(UserSerializer(user).data)


class UserViewSet(mixins.ListModelMixin,
                  mixins.CreateModelMixin,
                  mixins.DestroyModelMixin,
                  viewsets.GenericViewSet):
    """Actor administration"""
    queryset = User.objects.all()
    permission_classes = [permissions.IsAuthenticated, IsWorkspaceAdmin]
    pagination_class = None

    def get_serializer_class(self):
        if self.action == 'create':
            return UserCreateSerializer
        if self.action == 'verified':
            return UserSummarySerializer
        return UserSerializer

    def perform_create(self, serializer):
        actor_service.create_actor(self.request.user, serializer)

    def destroy(self, request, *args, **kwargs):
        actor_service.delete_actor(request.user, kwargs['pk'])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], permission_classes=[permissions.IsAuthenticated])
    def verified(self, request):
        """Verified actors, for adding to groups"""
        users = User.objects.filter(verified=True).order_by('username')
        serializer = self.get_serializer(users, many=True)
        return Response(serializer.data)
