from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from partners.services.membership import get_partner_for_user
from permissions.roles import effective_capabilities_for
from users.serializers import MeSerializer


class MeView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = MeSerializer

    @extend_schema(
        tags=["auth"],
        responses={200: MeSerializer},
        description="Current user profile, partner membership and capabilities",
    )
    def get(self, request):
        user = request.user
        partner = get_partner_for_user(user)

        return Response(
            {
                "id": user.id,
                "email": user.email,
                "username": user.username,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "role": user.role,
                "partner_id": partner.id if partner else None,
                "partner_name": partner.name if partner else None,
                "partner_type": partner.type if partner else None,
                "capabilities": sorted(effective_capabilities_for(request, user)),
            }
        )
