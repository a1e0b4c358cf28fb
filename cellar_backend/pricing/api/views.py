# pricing/api/views.py

"""
PRICING CALCULATOR ENDPOINTS

- Admins receive the full breakdown (every margin visible).
- Partners/distributors receive the consolidated view (margins hidden).
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import (
    CAP_PRICING_EDIT,
    CAP_PRICING_VIEW,
    HasCapability,
    user_has_capability,
)
from pricing.api.serializers import (
    B2BCalculateSerializer,
    ExchangeRateSerializer,
    PCOCalculateSerializer,
    PocketCellarCalculateSerializer,
    PricingVariableSerializer,
)
from pricing.models import ExchangeRate, PricingVariable
from pricing.services.config import (
    get_exchange_rates,
    get_module_variables,
    set_module_variable,
)
from pricing.services.pricing_engine import (
    MODULE_B2B,
    MODULE_PCO,
    MODULE_POCKET_CELLAR,
    PricingError,
    calculate_b2b_admin,
    calculate_pco_admin,
    calculate_pco_partner,
    calculate_pocket_cellar_admin,
    calculate_pocket_cellar_partner,
)


class _CalculatorView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PRICING_VIEW

    def _is_admin_view(self, request) -> bool:
        return user_has_capability(request.user, CAP_PRICING_EDIT)


class PCOCalculateView(_CalculatorView):
    serializer_class = PCOCalculateSerializer

    @extend_schema(tags=["pricing"], request=PCOCalculateSerializer, responses={200: dict})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        variables = get_module_variables(MODULE_PCO)
        rates = get_exchange_rates()

        try:
            if self._is_admin_view(request):
                bespoke = data.get("variables") or {}
                variables.update({k: v for k, v in bespoke.items() if k in variables})
                result = calculate_pco_admin(
                    data["supplier_price_usd"],
                    variables,
                    rates,
                    is_bespoke=data["is_bespoke"] or bool(bespoke),
                )
            else:
                result = calculate_pco_partner(data["supplier_price_usd"], variables, rates)
        except PricingError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(result)


class B2BCalculateView(_CalculatorView):
    serializer_class = B2BCalculateSerializer
    required_capability = CAP_PRICING_EDIT

    @extend_schema(tags=["pricing"], request=B2BCalculateSerializer, responses={200: dict})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            result = calculate_b2b_admin(
                s.validated_data["supplier_price_usd"],
                get_module_variables(MODULE_B2B),
                get_exchange_rates(),
            )
        except PricingError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(result)


class PocketCellarCalculateView(_CalculatorView):
    serializer_class = PocketCellarCalculateSerializer

    @extend_schema(tags=["pricing"], request=PocketCellarCalculateSerializer, responses={200: dict})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        calculate = (
            calculate_pocket_cellar_admin
            if self._is_admin_view(request)
            else calculate_pocket_cellar_partner
        )

        try:
            result = calculate(
                data["supplier_price_usd"],
                data["product_source"],
                data["bottle_count"],
                get_module_variables(MODULE_POCKET_CELLAR),
                get_exchange_rates(),
            )
        except PricingError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(result)


class PricingVariableViewSet(viewsets.ModelViewSet):
    serializer_class = PricingVariableSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PRICING_EDIT
    queryset = PricingVariable.objects.all()
    filterset_fields = ["module"]
    http_method_names = ["get", "post", "delete", "head", "options"]

    def create(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            row = set_module_variable(
                module=s.validated_data["module"],
                key=s.validated_data["key"],
                value=s.validated_data["value"],
                user=request.user,
            )
        except DjangoValidationError as exc:
            return Response({"detail": exc.messages}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(row).data, status=status.HTTP_201_CREATED)


class ExchangeRateViewSet(viewsets.ModelViewSet):
    serializer_class = ExchangeRateSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PRICING_EDIT
    queryset = ExchangeRate.objects.all()
    http_method_names = ["get", "post", "head", "options"]


class CurrentRatesView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_PRICING_VIEW

    @extend_schema(tags=["pricing"], responses={200: dict})
    def get(self, request):
        return Response(get_exchange_rates())
