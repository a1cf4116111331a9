from itertools import count

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.contrib.contenttypes.models import ContentType
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.catalog.models import Product
from apps.comments.models import Comment
from apps.comments.services import CommentService
from apps.core.models import DiscussionConfig
from apps.sales.models import Order
from apps.social.hooks import FILTER_HOOKS
from apps.social.models import Review

User = get_user_model()


def grant(user, *codenames):
    """Give a user review permissions and return a fresh instance (perm cache reset)."""
    perms = Permission.objects.filter(content_type__app_label='social', codename__in=codenames)
    user.user_permissions.add(*perms)
    return User.objects.get(pk=user.pk)


def update_config(**fields):
    config = DiscussionConfig.load()
    for name, value in fields.items():
        setattr(config, name, value)
    config.save()
    return config


@pytest.fixture(autouse=True)
def _clean_state():
    cache.clear()
    yield
    cache.clear()
    for hook in FILTER_HOOKS:
        hook.clear()


@pytest.fixture
def configure(db):
    """Change DiscussionConfig fields for one test."""
    return update_config


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def moderator(db):
    return User.objects.create_superuser(email='mod@example.com', username='mod', password='pass12345')


@pytest.fixture
def customer(db):
    user = User.objects.create_user(email='alice@example.com', username='alice', password='pass12345')
    return grant(user, 'add_review', 'view_review')


@pytest.fixture
def stranger(db):
    return User.objects.create_user(email='bob@example.com', username='bob', password='pass12345')


@pytest.fixture
def moderator_client(api_client, moderator):
    api_client.force_authenticate(moderator)
    return api_client


@pytest.fixture
def customer_client(api_client, customer):
    api_client.force_authenticate(customer)
    return api_client


@pytest.fixture
def product(db):
    return Product.objects.create(name='Owl Desk Lamp', slug='owl-desk-lamp', price=450000)


@pytest.fixture
def other_product(db):
    return Product.objects.create(name='Owl Mug', slug='owl-mug', price=90000)


@pytest.fixture
def order(db, customer):
    return Order.objects.create(user=customer, email=customer.email, status='pending')


@pytest.fixture
def make_review(db, product):
    """Insert review rows directly into the comment store, skipping moderation."""
    numbers = count(1)

    def _make(rating=0, **overrides):
        n = next(numbers)
        target = overrides.pop('product', product)
        data = {
            'content_type': ContentType.objects.get_for_model(Product),
            'object_id': target.pk,
            'author': f'Reviewer {n}',
            'author_email': f'reviewer{n}@example.com',
            'content': f'Review number {n}',
            'comment_type': 'review',
            'approved': Comment.APPROVED,
        }
        data.update(overrides)
        comment = CommentService.insert(data)
        CommentService.update_meta(comment.pk, 'rating', str(rating))
        return Review.objects.prefetch_related('meta').get(pk=comment.pk)

    return _make
