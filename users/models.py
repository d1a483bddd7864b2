"""
Users — Models

Custom User model with UUID PK, email-based auth and the four roles the
distribution backend knows about. Authorization rules live upstream; the
engine only consumes the (id, role) pair.

@file users/models.py
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.constants import ROLE_ADMIN, ROLE_PRESELLER, ROLE_TRUCK_DRIVER, ROLE_USER
from core.models import BaseModel
from users.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin, BaseModel):
    """Back-office user: administrators, sellers, pre-sellers and truck drivers."""

    class RoleChoices(models.TextChoices):
        ADMIN = ROLE_ADMIN, _('Administrator')
        USER = ROLE_USER, _('User')
        TRUCK_DRIVER = ROLE_TRUCK_DRIVER, _('Truck driver')
        PRESELLER = ROLE_PRESELLER, _('Pre-seller')

    email = models.EmailField(_('email'), unique=True)
    first_name = models.CharField(_('first name'), max_length=100)
    last_name = models.CharField(_('last name'), max_length=100)
    role = models.CharField(
        _('role'), max_length=12,
        choices=RoleChoices.choices, default=RoleChoices.USER,
        db_index=True,
    )

    is_staff = models.BooleanField(_('staff status'), default=False)
    is_active = models.BooleanField(_('active'), default=True)
    date_joined = models.DateTimeField(_('date joined'), default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['last_name', 'first_name']

    def __str__(self):
        return self.get_full_name()

    def get_full_name(self):
        full = f'{self.first_name} {self.last_name}'.strip()
        return full or self.email

    def get_short_name(self):
        return self.first_name or self.email

    @property
    def is_admin_role(self) -> bool:
        return self.role == ROLE_ADMIN
