"""
Feedback views and API endpoints.
"""
from rest_framework import status, generics, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.views import APIView
from django.shortcuts import get_object_or_404
from apps.feedback.exceptions import FeedbackError, FeedbackNotFound, OrderNotFound
from apps.feedback.permissions import IsFeedbackAuthor, IsFeedbackAuthorOrStaff
from apps.feedback.serializers import (
    FeedbackSerializer,
    CreateFeedbackSerializer,
    UpdateFeedbackSerializer,
    EligibilityQuerySerializer,
    ProductRatingSerializer,
)
from apps.feedback.services.feedback_service import FeedbackService
from apps.products.models import Product
from common.models import AdminActionLog
from common.services.logging_service import LoggingService


def _error_response(exc: FeedbackError) -> Response:
    """Map a lifecycle error to an HTTP response."""
    if isinstance(exc, (OrderNotFound, FeedbackNotFound)):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(exc)}, status=code)


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def create_feedback(request):
    """
    Leave feedback for a product on one of your delivered orders.
    """
    serializer = CreateFeedbackSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        feedback = FeedbackService.create_feedback(
            user_id=request.user.id,
            order_id=data['order_id'],
            product_id=data['product_id'],
            content=data['content'],
            rating=data['rating']
        )
    except FeedbackError as e:
        return _error_response(e)

    return Response(FeedbackSerializer(feedback).data, status=status.HTTP_201_CREATED)


class FeedbackDetailView(APIView):
    """
    GET: public.
    PUT/PATCH: author only.
    DELETE: author, admin or staff.
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [permissions.AllowAny()]
        if self.request.method == 'DELETE':
            return [permissions.IsAuthenticated(), IsFeedbackAuthorOrStaff()]
        return [permissions.IsAuthenticated(), IsFeedbackAuthor()]

    def get_object(self, pk):
        feedback = FeedbackService.get_feedback(pk)
        if feedback is None:
            raise FeedbackNotFound()
        self.check_object_permissions(self.request, feedback)
        return feedback

    def get(self, request, pk):
        try:
            feedback = self.get_object(pk)
        except FeedbackError as e:
            return _error_response(e)
        return Response(FeedbackSerializer(feedback).data)

    def put(self, request, pk):
        return self._update(request, pk, partial=False)

    def patch(self, request, pk):
        return self._update(request, pk, partial=True)

    def _update(self, request, pk, partial):
        """PUT replaces content and rating; PATCH keeps fields it does not send."""
        serializer = UpdateFeedbackSerializer(data=request.data, partial=partial)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            feedback = self.get_object(pk)
            data = serializer.validated_data
            feedback = FeedbackService.update_feedback(
                pk,
                content=data.get('content', feedback.content),
                new_rating=data.get('rating', feedback.rating)
            )
        except FeedbackError as e:
            return _error_response(e)

        return Response(FeedbackSerializer(feedback).data)

    def delete(self, request, pk):
        try:
            feedback = self.get_object(pk)
            author = feedback.user
            FeedbackService.delete_feedback(pk)
        except FeedbackError as e:
            return _error_response(e)

        if author.pk != request.user.pk:
            LoggingService.log_admin_action(
                admin_user=request.user,
                action=AdminActionLog.Action.DELETE_FEEDBACK,
                request=request,
                target_user=author,
                details={'feedback_id': pk, 'product_id': feedback.product_id}
            )

        return Response(status=status.HTTP_204_NO_CONTENT)


class MyFeedbackListView(generics.ListAPIView):
    """
    List feedback written by the current user.
    """
    serializer_class = FeedbackSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return FeedbackService.get_user_feedbacks(self.request.user.id)


class ProductFeedbackListView(generics.ListAPIView):
    """
    List feedback for a product. Public endpoint.
    """
    serializer_class = FeedbackSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):
        get_object_or_404(Product, pk=self.kwargs['product_id'])
        return FeedbackService.get_product_feedbacks(self.kwargs['product_id'])


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def recent_feedback(request):
    """
    Most recent feedback across the catalog. Public endpoint.
    """
    try:
        count = int(request.query_params.get('count', 10))
    except ValueError:
        return Response({'error': 'count must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    count = max(1, min(count, 100))  # Max 100 entries

    feedbacks = FeedbackService.get_recent_feedbacks(count)
    return Response(FeedbackSerializer(feedbacks, many=True).data)


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def product_rating(request, product_id):
    """
    Rating statistics for a product. Public endpoint.
    """
    product = get_object_or_404(Product, pk=product_id)

    serializer = ProductRatingSerializer({
        'product_id': product.id,
        'feedback_total': product.feedback_total,
        'average_rating': product.average_rating,
        'breakdown': {
            str(stars): count
            for stars, count in FeedbackService.get_rating_breakdown(product.id).items()
        },
    })
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def feedback_eligibility(request):
    """
    Whether the current user may leave feedback for a product on an order line.
    """
    serializer = EligibilityQuerySerializer(data=request.query_params)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    allowed = FeedbackService.can_provide_feedback(
        request.user.id,
        serializer.validated_data['product_id'],
        serializer.validated_data['order_detail_id']
    )
    return Response({'can_provide_feedback': allowed})
