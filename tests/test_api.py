"""End-to-end tests of /api/social/reviews/."""
from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.contrib.contenttypes.models import ContentType
from django.urls import reverse

from apps.comments.models import Comment, CommentMeta
from apps.comments.services import CommentService
from apps.sales.models import Order
from apps.social import hooks
from apps.utils.security import SecurityAuditLogger

pytestmark = pytest.mark.django_db

LIST_URL = '/api/social/reviews/'
BATCH_URL = '/api/social/reviews/batch/'


def detail_url(pk):
    return reverse('social:review-detail', kwargs={'pk': pk})


def _payload(product, **overrides):
    payload = {
        'product_id': product.pk,
        'review': 'Great!',
        'reviewer': 'Alice',
        'reviewer_email': 'a@x.com',
    }
    payload.update(overrides)
    return payload


def _ids(response):
    return [item['id'] for item in response.data]


def assert_error(response, status_code, code):
    assert response.status_code == status_code, response.data
    assert response.data['code'] == code
    assert response.data['data']['status'] == status_code
    assert response.data['message']


class TestCreate:
    def test_create_example(self, customer_client, product):
        response = customer_client.post(LIST_URL, _payload(product))

        assert response.status_code == 201, response.data
        review_id = response.data['id']
        assert response['Location'].endswith(f"/api/social/reviews/{review_id}/")
        assert response.data['status'] == 'approved'
        assert response.data['product_id'] == product.pk
        assert response.data['review'] == 'Great!'
        assert response.data['reviewer'] == 'Alice'
        assert response.data['reviewer_email'] == 'a@x.com'
        assert response.data['rating'] == 0
        assert response.data['verified'] is False
        assert CommentMeta.objects.get(comment_id=review_id, key='rating').value == '0'
        assert Comment.objects.get(pk=review_id).comment_type == 'review'

    def test_create_with_rating_and_status(self, moderator_client, product):
        response = moderator_client.post(LIST_URL, _payload(product, rating=4, status='hold'))

        assert response.status_code == 201, response.data
        assert response.data['rating'] == 4
        assert response.data['status'] == 'hold'

    def test_create_with_date(self, moderator_client, product):
        response = moderator_client.post(LIST_URL, _payload(product, date_created='2024-05-01T17:00:00'))

        assert response.data['date_created'] == '2024-05-01T17:00:00'
        assert response.data['date_created_gmt'] == '2024-05-01T10:00:00'

    def test_create_records_agent(self, moderator_client, product):
        response = moderator_client.post(LIST_URL, _payload(product, author_user_agent='OwlApp/2.0'))

        assert Comment.objects.get(pk=response.data['id']).agent == 'OwlApp/2.0'

    def test_blank_agent_falls_back_to_header(self, moderator_client, product):
        response = moderator_client.post(
            LIST_URL, _payload(product, author_user_agent=''), HTTP_USER_AGENT='Mozilla/5.0'
        )

        assert Comment.objects.get(pk=response.data['id']).agent == 'Mozilla/5.0'

    def test_body_is_sanitized(self, moderator_client, product):
        response = moderator_client.post(
            LIST_URL, _payload(product, review='<p>Nice</p><script>alert(1)</script>')
        )

        assert response.data['review'] == '<p>Nice</p>'

    def test_body_event_handlers_are_stripped(self, moderator_client, product):
        response = moderator_client.post(LIST_URL, _payload(product, review='Nice <svg/onload=alert(1)>'))

        assert response.status_code == 201
        assert response.data['review'] == 'Nice '
        assert 'onload' not in Comment.objects.get(pk=response.data['id']).content

    def test_held_when_moderation_required(self, customer_client, product, configure):
        configure(require_moderation=True)

        response = customer_client.post(LIST_URL, _payload(product))

        assert response.data['status'] == 'hold'

    def test_supplied_id_is_rejected(self, moderator_client, product, make_review):
        existing = make_review()

        response = moderator_client.post(LIST_URL, _payload(product, id=existing.pk))

        assert_error(response, 400, 'review_exists')

    def test_missing_required_fields(self, moderator_client):
        response = moderator_client.post(LIST_URL, {})

        assert_error(response, 400, 'rest_missing_callback_param')
        assert set(response.data['data']['params']) == {'product_id', 'review', 'reviewer', 'reviewer_email'}

    def test_invalid_email(self, moderator_client, product):
        response = moderator_client.post(LIST_URL, _payload(product, reviewer_email='not-an-email'))

        assert_error(response, 400, 'rest_invalid_param')
        assert 'reviewer_email' in response.data['data']['params']

    def test_empty_body(self, moderator_client, product):
        response = moderator_client.post(LIST_URL, _payload(product, review=''))

        assert_error(response, 400, 'review_content_invalid')
        assert not Comment.objects.exists()

    def test_unknown_product(self, moderator_client, product):
        response = moderator_client.post(LIST_URL, _payload(product, product_id=product.pk + 1000))

        assert_error(response, 404, 'product_invalid_id')

    def test_reviewer_too_long(self, moderator_client, product):
        response = moderator_client.post(LIST_URL, _payload(product, reviewer='a' * 246))

        assert_error(response, 400, 'reviewer_column_length')

    def test_duplicate(self, moderator_client, product):
        assert moderator_client.post(LIST_URL, _payload(product)).status_code == 201

        response = moderator_client.post(LIST_URL, _payload(product))

        assert_error(response, 409, 'comment_duplicate')

    def test_flood(self, customer_client, product):
        assert customer_client.post(LIST_URL, _payload(product)).status_code == 201

        response = customer_client.post(LIST_URL, _payload(product, review='One more thing'))

        assert_error(response, 400, 'comment_flood')

    def test_no_flood_control_when_disabled(self, customer_client, product, configure):
        configure(flood_interval=0)

        customer_client.post(LIST_URL, _payload(product))
        response = customer_client.post(LIST_URL, _payload(product, review='One more thing'))

        assert response.status_code == 201

    def test_anonymous(self, api_client, product):
        response = api_client.post(LIST_URL, _payload(product))

        assert_error(response, 401, 'not_authenticated')

    def test_without_permission(self, api_client, stranger, product):
        api_client.force_authenticate(stranger)

        response = api_client.post(LIST_URL, _payload(product))

        assert_error(response, 403, 'permission_denied')

    def test_delivered_order_makes_review_verified(self, customer_client, customer, product):
        order = Order.objects.create(user=customer, email=customer.email, status='delivered')
        order.items.create(product=product, quantity=1, price=product.price)

        response = customer_client.post(LIST_URL, _payload(product, reviewer_email=customer.email))

        assert response.data['verified'] is True


class TestRetrieve:
    def test_retrieve(self, customer_client, make_review):
        review = make_review(rating=3)

        response = customer_client.get(detail_url(review.pk))

        assert response.status_code == 200
        assert response.data['id'] == review.pk
        assert response.data['rating'] == 3
        assert response.data['_links']['self'][0]['href'] == f"http://testserver{detail_url(review.pk)}"

    @pytest.mark.parametrize('pk', [0, -3, 999999])
    def test_invalid_id(self, moderator_client, pk):
        assert_error(moderator_client.get(detail_url(pk)), 404, 'review_invalid_id')

    def test_unknown_id_answers_404_before_auth(self, api_client):
        assert_error(api_client.get(detail_url(999999)), 404, 'review_invalid_id')

    def test_anonymous(self, api_client, make_review):
        assert_error(api_client.get(detail_url(make_review().pk)), 401, 'not_authenticated')

    def test_attached_to_non_product(self, moderator_client, make_review, order):
        review = make_review(content_type=ContentType.objects.get_for_model(Order), object_id=order.pk)

        assert_error(moderator_client.get(detail_url(review.pk)), 404, 'product_invalid_id')

    def test_read_capability_hook(self, customer_client, make_review):
        review = make_review()
        hooks.review_capability.register(
            lambda allowed, user, capability, review: allowed and capability != 'read'
        )

        assert_error(customer_client.get(detail_url(review.pk)), 403, 'permission_denied')


class TestUpdate:
    def test_status_only_update_trashes_once(self, moderator_client, make_review, monkeypatch):
        review = make_review(rating=4, content='Keep me', author='Alice')
        calls = []
        trash = CommentService.trash

        def counting_trash(comment_id):
            calls.append(comment_id)
            return trash(comment_id)

        monkeypatch.setattr(CommentService, 'trash', staticmethod(counting_trash))

        response = moderator_client.patch(detail_url(review.pk), {'status': 'trash'})

        assert response.status_code == 200, response.data
        assert calls == [review.pk]
        assert response.data['status'] == 'trash'
        assert response.data['review'] == 'Keep me'
        assert response.data['reviewer'] == 'Alice'
        assert response.data['rating'] == 4

    def test_put_only_touches_sent_fields(self, moderator_client, make_review):
        review = make_review(rating=3, author='Alice', author_email='a@x.com')

        response = moderator_client.put(detail_url(review.pk), {'review': 'Updated', 'rating': 5})

        assert response.status_code == 200, response.data
        assert response.data['review'] == 'Updated'
        assert response.data['rating'] == 5
        assert response.data['reviewer'] == 'Alice'
        assert response.data['reviewer_email'] == 'a@x.com'

    def test_zero_rating_is_not_written(self, moderator_client, make_review):
        review = make_review(rating=3)

        response = moderator_client.patch(detail_url(review.pk), {'rating': 0})

        assert response.data['rating'] == 3

    def test_same_status_is_a_no_op(self, moderator_client, make_review, monkeypatch):
        review = make_review()
        monkeypatch.setattr(CommentService, 'set_status', staticmethod(lambda *args: pytest.fail('mutated')))

        response = moderator_client.patch(detail_url(review.pk), {'status': 'approved'})

        assert response.status_code == 200
        assert response.data['status'] == 'approved'

    def test_untrash(self, moderator_client, make_review):
        review = make_review(approved=Comment.HOLD)
        CommentService.trash(review.pk)

        response = moderator_client.patch(detail_url(review.pk), {'status': 'untrash'})

        assert response.data['status'] == 'hold'

    def test_clearing_body(self, moderator_client, make_review):
        assert_error(moderator_client.patch(detail_url(make_review().pk), {'review': ''}), 400, 'review_content_invalid')

    def test_moving_to_unknown_product(self, moderator_client, make_review, product):
        response = moderator_client.patch(detail_url(make_review().pk), {'product_id': product.pk + 1000})

        assert_error(response, 404, 'product_invalid_id')

    def test_moving_to_other_product(self, moderator_client, make_review, other_product):
        response = moderator_client.patch(detail_url(make_review().pk), {'product_id': other_product.pk})

        assert response.data['product_id'] == other_product.pk

    def test_type_on_plain_comment(self, moderator_client, make_review):
        comment = make_review(comment_type='comment')

        response = moderator_client.patch(detail_url(comment.pk), {'type': 'review'})

        assert_error(response, 404, 'review_invalid_type')

    def test_type_on_review_is_accepted(self, moderator_client, make_review):
        response = moderator_client.patch(detail_url(make_review().pk), {'type': 'review', 'rating': 2})

        assert response.status_code == 200
        assert response.data['rating'] == 2

    def test_without_edit_permission(self, customer_client, make_review):
        assert_error(customer_client.patch(detail_url(make_review().pk), {'rating': 1}), 403, 'permission_denied')

    def test_unknown_id(self, moderator_client):
        assert_error(moderator_client.patch(detail_url(999999), {'rating': 1}), 404, 'review_invalid_id')


class TestDelete:
    def test_trash_then_already_trashed(self, moderator_client, make_review):
        review = make_review()

        response = moderator_client.delete(detail_url(review.pk))
        assert response.status_code == 200
        assert response.data['status'] == 'trash'

        assert_error(moderator_client.delete(detail_url(review.pk)), 410, 'already_trashed')
        assert CommentService.get_status(review.pk) == 'trash'

    def test_force(self, moderator_client, make_review):
        review = make_review(rating=5)

        response = moderator_client.delete(f"{detail_url(review.pk)}?force=true")

        assert response.status_code == 200
        assert response.data['deleted'] is True
        assert response.data['previous']['id'] == review.pk
        assert response.data['previous']['rating'] == 5
        assert not Comment.objects.filter(pk=review.pk).exists()
        assert_error(moderator_client.get(detail_url(review.pk)), 404, 'review_invalid_id')

    def test_trash_not_supported(self, moderator_client, make_review, configure):
        configure(trash_days=0)

        assert_error(moderator_client.delete(detail_url(make_review().pk)), 501, 'trash_not_supported')

    def test_invalid_force_flag(self, moderator_client, make_review):
        response = moderator_client.delete(f"{detail_url(make_review().pk)}?force=maybe")

        assert_error(response, 400, 'rest_invalid_param')

    def test_without_delete_permission(self, customer_client, make_review):
        assert_error(customer_client.delete(detail_url(make_review().pk)), 403, 'permission_denied')


class TestList:
    def test_defaults_to_approved_reviews(self, moderator_client, make_review):
        approved = [make_review(), make_review()]
        make_review(approved=Comment.HOLD)
        make_review(approved=Comment.SPAM)
        make_review(comment_type='comment')

        response = moderator_client.get(LIST_URL)

        assert response.status_code == 200
        assert sorted(_ids(response)) == sorted(r.pk for r in approved)
        assert response['X-Total-Count'] == '2'
        assert response['X-Total-Pages'] == '1'

    @pytest.mark.parametrize('status, expected', [
        ('all', 3),
        ('hold', 1),
        ('approved', 2),
        ('spam', 1),
        ('trash', 1),
    ])
    def test_status_filter(self, moderator_client, make_review, status, expected):
        make_review()
        make_review()
        make_review(approved=Comment.HOLD)
        make_review(approved=Comment.SPAM)
        make_review(approved=Comment.TRASH)

        response = moderator_client.get(LIST_URL, {'status': status})

        assert len(response.data) == expected

    def test_invalid_status(self, moderator_client):
        assert_error(moderator_client.get(LIST_URL, {'status': 'published'}), 400, 'rest_invalid_param')

    def test_pagination_headers(self, moderator_client, make_review):
        for _ in range(5):
            make_review()

        response = moderator_client.get(LIST_URL, {'per_page': 2, 'page': 2})

        assert len(response.data) == 2
        assert response['X-Total-Count'] == '5'
        assert response['X-Total-Pages'] == '3'
        assert 'rel="prev"' in response['Link']
        assert 'rel="next"' in response['Link']
        assert 'page=3' in response['Link']

    def test_page_past_the_end(self, moderator_client, make_review):
        make_review()

        response = moderator_client.get(LIST_URL, {'page': 5})

        assert response.status_code == 200
        assert response.data == []
        assert response['X-Total-Count'] == '1'

    def test_offset(self, moderator_client, make_review):
        reviews = [make_review() for _ in range(5)]

        response = moderator_client.get(LIST_URL, {'offset': 4, 'per_page': 2, 'orderby': 'id', 'order': 'asc'})

        assert _ids(response) == [reviews[4].pk]

    def test_per_page_above_maximum(self, moderator_client, make_review):
        make_review()

        response = moderator_client.get(LIST_URL, {'per_page': 101})

        assert_error(response, 400, 'rest_invalid_param')
        assert 'per_page' in response.data['data']['params']

    def test_per_page_at_maximum(self, moderator_client, make_review):
        make_review()

        assert moderator_client.get(LIST_URL, {'per_page': 100}).status_code == 200

    def test_per_page_below_one(self, moderator_client):
        assert_error(moderator_client.get(LIST_URL, {'per_page': 0}), 400, 'rest_invalid_param')

    def test_product_filter(self, moderator_client, make_review, other_product):
        make_review()
        other = make_review(product=other_product)

        assert _ids(moderator_client.get(LIST_URL, {'product': other_product.pk})) == [other.pk]

    def test_include_exclude(self, moderator_client, make_review):
        a, b, c = make_review(), make_review(), make_review()

        assert sorted(_ids(moderator_client.get(LIST_URL, {'include': f"{a.pk},{c.pk}"}))) == sorted([a.pk, c.pk])
        assert sorted(_ids(moderator_client.get(LIST_URL, {'exclude': f"{a.pk}"}))) == sorted([b.pk, c.pk])

    def test_orderby_include(self, moderator_client, make_review):
        a, b, c = make_review(), make_review(), make_review()

        response = moderator_client.get(
            LIST_URL, {'include': f"{c.pk},{a.pk},{b.pk}", 'orderby': 'include', 'order': 'asc'}
        )

        assert _ids(response) == [c.pk, a.pk, b.pk]

    def test_default_order_is_newest_first(self, moderator_client, make_review):
        now = datetime.now(dt_timezone.utc)
        old = make_review(date=now - timedelta(days=2), date_gmt=now - timedelta(days=2))
        new = make_review(date=now, date_gmt=now)

        assert _ids(moderator_client.get(LIST_URL)) == [new.pk, old.pk]

    def test_orderby_id_asc(self, moderator_client, make_review):
        reviews = [make_review() for _ in range(3)]

        assert _ids(moderator_client.get(LIST_URL, {'orderby': 'id', 'order': 'asc'})) == [r.pk for r in reviews]

    def test_invalid_orderby(self, moderator_client):
        assert_error(moderator_client.get(LIST_URL, {'orderby': 'rating'}), 400, 'rest_invalid_param')

    def test_search(self, moderator_client, make_review):
        match = make_review(content='Sturdy base, warm light')
        make_review(content='Too small')

        assert _ids(moderator_client.get(LIST_URL, {'search': 'sturdy'})) == [match.pk]

    def test_reviewer_filters(self, moderator_client, make_review, customer):
        mine = make_review(user=customer)
        other = make_review()

        assert _ids(moderator_client.get(LIST_URL, {'reviewer': str(customer.pk)})) == [mine.pk]
        assert _ids(moderator_client.get(LIST_URL, {'reviewer_exclude': str(customer.pk)})) == [other.pk]

    def test_reviewer_email_filter(self, moderator_client, make_review):
        match = make_review(author_email='owl@example.com')
        make_review()

        assert _ids(moderator_client.get(LIST_URL, {'reviewer_email': 'OWL@example.com'})) == [match.pk]

    def test_date_range(self, moderator_client, make_review):
        now = datetime.now(dt_timezone.utc)
        make_review(date=now - timedelta(days=10), date_gmt=now - timedelta(days=10))
        recent = make_review(date=now - timedelta(days=1), date_gmt=now - timedelta(days=1))

        cutoff = (now - timedelta(days=5)).isoformat()

        assert _ids(moderator_client.get(LIST_URL, {'after': cutoff})) == [recent.pk]
        assert recent.pk not in _ids(moderator_client.get(LIST_URL, {'before': cutoff}))

    def test_unreadable_reviews_are_dropped(self, customer_client, make_review):
        hidden = make_review()
        shown = make_review()
        hooks.review_capability.register(
            lambda allowed, user, capability, review: allowed and (review is None or review.pk != hidden.pk)
        )

        assert _ids(customer_client.get(LIST_URL)) == [shown.pk]

    def test_query_hook(self, moderator_client, make_review):
        make_review(rating=2)
        starred = make_review(rating=5)
        hooks.review_query.register(lambda queryset, request: queryset.filter(meta__key='rating', meta__value='5'))

        assert _ids(moderator_client.get(LIST_URL)) == [starred.pk]

    def test_anonymous(self, api_client):
        assert_error(api_client.get(LIST_URL), 401, 'not_authenticated')


class TestBatch:
    def test_items_succeed_or_fail_independently(self, moderator_client, product, make_review):
        to_update = make_review(rating=1)
        to_delete = make_review()

        response = moderator_client.post(BATCH_URL, {
            'create': [_payload(product), {'product_id': product.pk, 'reviewer': 'No body', 'reviewer_email': 'n@x.com'}],
            'update': [{'id': to_update.pk, 'rating': 5}],
            'delete': [to_delete.pk, 999999],
        })

        assert response.status_code == 200, response.data
        created, failed = response.data['create']
        assert created['status'] == 'approved'
        assert failed['error']['code'] == 'rest_missing_callback_param'
        assert response.data['update'][0]['rating'] == 5
        assert response.data['delete'][0]['deleted'] is True
        assert response.data['delete'][1] == {
            'id': 999999,
            'error': {'code': 'review_invalid_id', 'message': 'Invalid review ID.', 'data': {'status': 404}},
        }
        assert not Comment.objects.filter(pk=to_delete.pk).exists()

    def test_item_permissions(self, customer_client, product, make_review):
        review = make_review()

        response = customer_client.post(BATCH_URL, {'create': [_payload(product)], 'delete': [review.pk]})

        assert response.data['create'][0]['review'] == 'Great!'
        assert response.data['delete'][0]['error']['code'] == 'permission_denied'
        assert Comment.objects.filter(pk=review.pk).exists()

    def test_limit(self, moderator_client):
        assert_error(moderator_client.post(BATCH_URL, {'delete': list(range(1, 102))}), 400, 'rest_invalid_param')

    def test_anonymous(self, api_client):
        assert_error(api_client.post(BATCH_URL, {'delete': [1]}), 401, 'not_authenticated')


class TestDiscussionConfigEndpoint:
    def test_admin_can_disable_trash(self, moderator_client, make_review):
        response = moderator_client.patch('/api/core/discussion/', {'trash_days': 0})
        assert response.status_code == 200
        assert response.data['trash_days'] == 0

        assert_error(moderator_client.delete(detail_url(make_review().pk)), 501, 'trash_not_supported')

    def test_customers_cannot_read_config(self, customer_client):
        assert customer_client.get('/api/core/discussion/').status_code == 403


class TestAudit:
    def test_review_writes_are_audited(self, moderator_client, product, monkeypatch):
        entries = []
        monkeypatch.setattr(
            SecurityAuditLogger, 'log_api_access',
            lambda self, path, method, ip, user_id=None, status=0: entries.append((path, method, status)),
        )

        moderator_client.post(LIST_URL, _payload(product))
        moderator_client.get(LIST_URL)

        assert entries == [(LIST_URL, 'POST', 201)]
