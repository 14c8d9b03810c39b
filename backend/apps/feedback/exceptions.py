"""
Errors raised by the feedback lifecycle.
"""


class FeedbackError(Exception):
    """Base class; the message is safe to show to the caller."""
    default_message = "Feedback operation failed."

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class OrderNotFound(FeedbackError):
    default_message = "Order not found or does not belong to the user."


class NotYetDelivered(FeedbackError):
    default_message = "The order has not been delivered yet."


class ProductNotInOrder(FeedbackError):
    default_message = "Product not found in the order."


class InvalidRating(FeedbackError):
    default_message = "Invalid rating value."


class FeedbackNotFound(FeedbackError):
    default_message = "Feedback not found."


class DuplicateFeedback(FeedbackError):
    default_message = "Feedback has already been provided for this order line."
