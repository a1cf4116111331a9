"""Filter hook chains, review extension points and the verified-purchase receiver."""
import pytest
from django.contrib.contenttypes.models import ContentType
from django.test import RequestFactory

from apps.catalog.models import Product
from apps.comments.models import Comment
from apps.sales.models import Order, OrderItem
from apps.social import hooks
from apps.social.exceptions import ReviewError
from apps.social.services import ReviewService
from apps.utils.hooks import FilterHook


def _request(user=None):
    request = RequestFactory().post('/api/social/reviews/', REMOTE_ADDR='10.1.1.1', HTTP_USER_AGENT='pytest')
    if user is not None:
        request.user = user
    return request


def _record(product, **overrides):
    record = {
        'content_type': ContentType.objects.get_for_model(Product),
        'object_id': product.pk,
        'author': 'Alice',
        'author_email': 'alice@example.com',
        'content': 'Bright and sturdy.',
    }
    record.update(overrides)
    return record


class TestFilterHook:
    def test_value_passes_through_callbacks_in_priority_order(self):
        hook = FilterHook('test')
        hook.register(lambda value: value + ['default'])
        hook.register(lambda value: value + ['late'], priority=20)
        hook.register(lambda value: value + ['early'], priority=1)

        assert hook.apply([]) == ['early', 'default', 'late']

    def test_same_priority_keeps_registration_order(self):
        hook = FilterHook('test')
        for name in 'abc':
            hook.register(lambda value, name=name: value + name)

        assert hook.apply('') == 'abc'

    def test_decorator_registration(self):
        hook = FilterHook('test')

        @hook.register(priority=5)
        def double(value):
            return value * 2

        assert double(2) == 4
        assert hook.callbacks == [double]
        assert hook.apply(3) == 6

    def test_context_is_passed_to_every_callback(self):
        hook = FilterHook('test')
        seen = []
        hook.register(lambda value, **context: seen.append(context) or value)

        hook.apply(1, request='req', instance=None)

        assert seen == [{'request': 'req', 'instance': None}]

    def test_raising_stops_the_chain(self):
        hook = FilterHook('test')
        reached = []

        def reject(value):
            raise ReviewError('rejected')

        hook.register(reject)
        hook.register(lambda value: reached.append(value) or value, priority=50)

        with pytest.raises(ReviewError):
            hook.apply('x')
        assert reached == []

    def test_unregister_and_clear(self):
        hook = FilterHook('test')
        first = hook.register(lambda value: value + 1)
        hook.register(lambda value: value * 10)

        assert hook.unregister(first) is True
        assert hook.unregister(first) is False
        assert hook.apply(1) == 10

        hook.clear()
        assert len(hook) == 0
        assert hook.apply(1) == 1

    def test_empty_hook_returns_value_unchanged(self):
        assert FilterHook('test').apply({'a': 1}) == {'a': 1}


@pytest.mark.django_db
class TestReviewHooks:
    def test_preprocess_can_rewrite_the_record(self, product, moderator):
        @hooks.preprocess_review.register
        def shout(record, request, instance):
            record['content'] = record['content'].upper()
            return record

        review = ReviewService.create(_record(product), request=_request(moderator))

        assert review.content == 'BRIGHT AND STURDY.'

    def test_pre_insert_rejection_stops_the_insert(self, product, moderator):
        def refuse(record, request):
            raise ReviewError('Reviews are closed.', code='reviews_closed')

        hooks.pre_insert_review.register(refuse)

        with pytest.raises(ReviewError) as exc:
            ReviewService.create(_record(product), request=_request(moderator))

        assert exc.value.code == 'reviews_closed'
        assert not Comment.objects.exists()

    def test_pre_insert_sees_moderation_outcome(self, product, moderator):
        seen = []
        hooks.pre_insert_review.register(lambda record, request: seen.append(record['approved']) or record)

        ReviewService.create(_record(product), request=_request(moderator))

        assert seen == [Comment.APPROVED]

    def test_inserted_signal(self, product, moderator):
        received = []

        def on_inserted(sender, review, creating, **kwargs):
            received.append((review.pk, creating))

        hooks.review_inserted.connect(on_inserted)
        try:
            review = ReviewService.create(_record(product), request=_request(moderator))
            ReviewService.update(review, {'rating': 2}, request=_request(moderator))
        finally:
            hooks.review_inserted.disconnect(on_inserted)

        assert received == [(review.pk, True), (review.pk, False)]

    def test_create_records_request_origin(self, product, moderator):
        review = ReviewService.create(_record(product), request=_request(moderator))

        assert review.author_ip == '10.1.1.1'
        assert review.agent == 'pytest'
        assert review.user_id == moderator.pk
        assert review.comment_type == 'review'
        assert review.get_meta('rating') == '0'


@pytest.mark.django_db
class TestVerifiedOwner:
    def _buy(self, product, status='delivered', **order_fields):
        order = Order.objects.create(status=status, **order_fields)
        OrderItem.objects.create(order=order, product=product, quantity=1, price=product.price)
        return order

    def test_delivered_order_marks_review_verified(self, product, customer):
        self._buy(product, user=customer, email=customer.email)

        review = ReviewService.create(
            _record(product, author_email=customer.email), request=_request(customer)
        )

        assert review.verified is True

    def test_guest_order_matched_by_email(self, product, moderator):
        self._buy(product, email='guest@example.com')

        review = ReviewService.create(
            _record(product, author_email='guest@example.com'), request=_request(moderator)
        )

        assert review.verified is True

    def test_undelivered_order_is_not_verified(self, product, customer):
        self._buy(product, status='shipping', user=customer, email=customer.email)

        review = ReviewService.create(
            _record(product, author_email=customer.email), request=_request(customer)
        )

        assert review.verified is False
        assert review.get_meta('verified') == '0'

    def test_other_product_is_not_verified(self, product, other_product, customer):
        self._buy(other_product, user=customer, email=customer.email)

        review = ReviewService.create(
            _record(product, author_email=customer.email), request=_request(customer)
        )

        assert review.verified is False
