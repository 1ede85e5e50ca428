from django.contrib.auth import authenticate
from rest_framework import serializers

from .models import User
from .roles import Role


class UserSerializer(serializers.ModelSerializer):
    """Serializer for actor data"""

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'role', 'verified',
            'is_active', 'created_at', 'last_login_at'
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Id and username only, for member pickers"""

    class Meta:
        model = User
        fields = ['id', 'username']
        read_only_fields = fields


class UserCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating new actors"""
    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(choices=Role.choices, default=Role.USER)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'role', 'password', 'verified']
        read_only_fields = ['id', 'verified']

    def validate_username(self, value):
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError('Username already exists')
        return value

    def create(self, validated_data):
        password = validated_data.pop('password')
        # Manually created accounts skip email verification
        validated_data['verified'] = True
        return User.objects.create_user(password=password, **validated_data)


class LoginSerializer(serializers.Serializer):
    """Serializer for username/password login"""
    username = serializers.CharField()
    password = serializers.CharField()

    def validate(self, attrs):
        user = authenticate(username=attrs['username'], password=attrs['password'])
        if not user:
            raise serializers.ValidationError('Invalid credentials')
        if not user.is_active:
            raise serializers.ValidationError('User account is disabled')
        attrs['user'] = user
        return attrs
