from django.urls import path
from . import views

app_name = 'wallet'

urlpatterns = [
    # GET /api/wallet/ - Balance and recent transactions
    path('', views.my_wallet, name='my-wallet'),
]
