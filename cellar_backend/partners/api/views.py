# partners/api/views.py

from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from partners.api.serializers import (
    AddMemberSerializer,
    PartnerMemberSerializer,
    PartnerSerializer,
)
from partners.models import Partner
from partners.services.membership import add_member, get_partner_for_user
from permissions.roles import CAP_PARTNERS_MANAGE, HasCapability


class PartnerViewSet(viewsets.ModelViewSet):
    """
    Admin management of wine partners and distributors.

    Filters:
    - ?type=wine_partner|distributor
    - ?is_active=true|false
    """

    serializer_class = PartnerSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PARTNERS_MANAGE
    filterset_fields = ["type", "is_active"]
    queryset = Partner.objects.all().order_by("name")
    http_method_names = ["get", "post", "patch", "head", "options"]

    @extend_schema(tags=["partners"], request=AddMemberSerializer, responses={201: PartnerMemberSerializer})
    @action(detail=True, methods=["post"], url_path="members")
    def add_member(self, request, pk=None):
        partner = self.get_object()
        s = AddMemberSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        User = get_user_model()
        user = User.objects.filter(id=s.validated_data["user_id"], is_active=True).first()
        if user is None:
            return Response({"detail": "User not found"}, status=status.HTTP_404_NOT_FOUND)

        membership = add_member(partner=partner, user=user, role=s.validated_data["role"])
        return Response(PartnerMemberSerializer(membership).data, status=status.HTTP_201_CREATED)


class MyPartnerView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PartnerSerializer

    @extend_schema(tags=["partners"], responses=PartnerSerializer)
    def get(self, request):
        partner = get_partner_for_user(request.user)
        if partner is None:
            return Response(
                {"detail": "You are not a member of any partner"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(PartnerSerializer(partner).data)
