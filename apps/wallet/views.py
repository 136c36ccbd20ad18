from drf_spectacular.utils import extend_schema
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import Wallet
from .serializers import WalletSerializer


@extend_schema(
    responses={200: WalletSerializer},
    description="Get the current member's wallet balance and recent transactions.",
    tags=['wallet'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_wallet(request):
    """Get wallet for current member (created empty on first access)."""
    wallet, _ = Wallet.objects.get_or_create(member=request.user)
    serializer = WalletSerializer(wallet, context={'request': request})
    return Response(serializer.data)
