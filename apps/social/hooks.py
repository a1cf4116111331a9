"""
Extension points around the review API.

Filter hooks receive a value and return it (possibly changed); a callback
rejects the request by raising a ReviewError. Signals are fired after the
fact and their return values are ignored.
"""
from django.dispatch import Signal
from apps.utils.hooks import FilterHook

# queryset, request=
review_query = FilterHook('review_query')

# record dict, request=, instance=
preprocess_review = FilterHook('preprocess_review')

# validated record dict, request=
pre_insert_review = FilterHook('pre_insert_review')

# bool, review=
review_trashable = FilterHook('review_trashable')

# bool, user=, capability=, review=
review_capability = FilterHook('review_capability')

FILTER_HOOKS = (review_query, preprocess_review, pre_insert_review, review_trashable, review_capability)

# sender=Review, review=, request=, creating=
review_inserted = Signal()

# sender=Review, review=, response=, request=
review_deleted = Signal()
