from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from .models import AuditEntry, Device
import logging

logger = logging.getLogger(__name__)


# ============================================
# DEVICE SIGNALS
# ============================================

@receiver(post_save, sender=Device)
def device_post_save(sender, instance, created, **kwargs):
    """Log device registration and updates"""
    if created:
        logger.info(
            f"Device created: {instance.serial} "
            f"(Model: {instance.model_tag or '-'}, Status: {instance.current_status})"
        )
    else:
        logger.debug(f"Device updated: {instance.serial} (Status: {instance.current_status})")


@receiver(post_delete, sender=Device)
def device_post_delete(sender, instance, **kwargs):
    logger.info(f"Device deleted: {instance.serial}")


# ============================================
# AUDIT ENTRY SIGNALS
# ============================================

@receiver(post_save, sender=AuditEntry)
def audit_entry_post_save(sender, instance, created, **kwargs):
    """
    Log audit appends.

    Warns (never fails) when the entry's status does not match the device's
    current status, i.e. the state and the trail have drifted apart.
    """
    if not created:
        return

    logger.info(
        f"Audit: {instance.serial_snapshot} -> {instance.status}"
        + (f" ({instance.note})" if instance.note else "")
    )

    device = instance.device
    if device.current_status != instance.status:
        logger.warning(
            f"AUDIT MISMATCH: Device {device.serial} is '{device.current_status}' "
            f"but latest audit entry says '{instance.status}'"
        )
