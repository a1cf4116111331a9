"""Errors raised by the comment store and the moderation decision."""


class CommentError(Exception):
    code = 'comment_error'
    message = 'Comment rejected.'

    def __init__(self, message=None):
        self.message = message or self.message
        super().__init__(self.message)


class CommentDuplicate(CommentError):
    code = 'comment_duplicate'
    message = "Duplicate comment detected; it looks as though you've already said that!"


class CommentFlood(CommentError):
    code = 'comment_flood'
    message = 'You are posting comments too quickly. Slow down.'


class CommentFieldTooLong(CommentError):
    """A column overflowed; ``code`` is ``comment_<field>_column_length``."""

    def __init__(self, field, max_length):
        self.field = field
        self.max_length = max_length
        self.code = f"comment_{field}_column_length"
        super().__init__(f"Comment field '{field}' exceeds {max_length} characters.")
