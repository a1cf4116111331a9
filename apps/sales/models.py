"""Sales app models - Order history used for verified-owner reviews."""
import uuid
import time
from django.db import models
from django.conf import settings
from apps.catalog.models import Product


class OrderQuerySet(models.QuerySet):
    def delivered(self):
        return self.filter(status=Order.DELIVERED)

    def placed_by(self, user=None, email=''):
        """Orders belonging to a user account or, for guests, an email address."""
        lookup = models.Q()
        if user is not None:
            lookup |= models.Q(user=user)
        if email:
            lookup |= models.Q(email__iexact=email) | models.Q(user__email__iexact=email)
        if not lookup:
            return self.none()
        return self.filter(lookup)


class Order(models.Model):
    """Đơn hàng."""

    DELIVERED = 'delivered'

    STATUS_CHOICES = [
        ('pending', 'Chờ xác nhận'),
        ('confirmed', 'Đã xác nhận'),
        ('processing', 'Đang xử lý'),
        ('shipping', 'Đang giao hàng'),
        (DELIVERED, 'Đã giao hàng'),
        ('cancelled', 'Đã hủy'),
    ]

    objects = OrderQuerySet.as_manager()

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='orders'
    )
    order_number = models.CharField(max_length=20, unique=True, editable=False)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    email = models.EmailField(blank=True)
    total = models.DecimalField(max_digits=12, decimal_places=0, default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Đơn hàng'
        verbose_name_plural = 'Đơn hàng'
        ordering = ['-created_at']

    def __str__(self):
        return f"Đơn hàng #{self.order_number}"

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = self.generate_order_number()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_order_number():
        timestamp = str(int(time.time()))[-8:]
        unique_id = str(uuid.uuid4().int)[:4]
        return f"OWL{timestamp}{unique_id}"


class OrderItem(models.Model):
    """Sản phẩm trong đơn hàng."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, related_name='order_items')
    product_name = models.CharField(max_length=255, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=12, decimal_places=0, default=0)

    class Meta:
        verbose_name = 'Sản phẩm trong đơn'
        verbose_name_plural = 'Sản phẩm trong đơn'

    def __str__(self):
        return f"{self.quantity}x {self.product_name}"

    def save(self, *args, **kwargs):
        if not self.product_name and self.product_id:
            self.product_name = self.product.name
        super().save(*args, **kwargs)
