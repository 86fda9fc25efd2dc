from django.contrib.auth.base_user import BaseUserManager


class UserManager(BaseUserManager):
    """
    Manager for BookOn accounts. Self-service signups are parents; staff,
    venue managers and admins are created by an admin with an explicit role.
    """

    def create_user(self, username, password=None, role='parent', **extra_fields):
        """
        Create a user with the given role (parent unless stated).
        Email is normalised when given.
        """
        if not username:
            raise ValueError('The Username field must be set')

        if extra_fields.get('email'):
            extra_fields['email'] = self.normalize_email(extra_fields['email'])

        user = self.model(username=username, role=role, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, username, password=None, **extra_fields):
        """
        Superusers are platform admins with Django admin access.
        """
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        role = extra_fields.pop('role', 'admin')
        return self.create_user(username, password, role=role, **extra_fields)
