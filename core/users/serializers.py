from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Child


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('id', 'username', 'email', 'mobile', 'first_name', 'last_name',
                  'address_line1', 'address_line2', 'city', 'postcode', 'country',
                  'role', 'is_active', 'date_joined', 'last_login')
        read_only_fields = ('id', 'role', 'is_active', 'date_joined', 'last_login')


class UserRegistrationSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])

    class Meta:
        model = User
        fields = ('id', 'username', 'email', 'mobile', 'first_name', 'last_name', 'password')

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, role='parent', **validated_data)


class ChildSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = Child
        fields = ('id', 'parent', 'first_name', 'last_name', 'full_name', 'date_of_birth',
                  'school', 'medical_notes', 'is_active', 'created_at', 'updated_at')
        read_only_fields = ('id', 'parent', 'created_at', 'updated_at')
