"""Pricing and payment bookkeeping for session enrollments."""
from typing import Optional

from backoffice.models.formations import PaymentStatus, SessionEtudiant


def money(value) -> float:
    return round(float(value or 0), 2)


def payment_status(paid, total) -> str:
    paid = money(paid)
    if paid >= money(total):
        return PaymentStatus.paye.value
    if paid > 0:
        return PaymentStatus.partiellement_paye.value
    return PaymentStatus.impaye.value


def price_enrollment(original_price, discount_percentage=0, paid=0) -> dict:
    """Amounts for a new enrollment."""
    original = money(original_price)
    pct = float(discount_percentage or 0)
    discount_amount = money(original * pct / 100)
    total = money(original - discount_amount)
    return {
        "formation_original_price": original,
        "discount_percentage": pct,
        "discount_amount": discount_amount,
        "montant_total": total,
        "montant_paye": money(paid),
        "montant_du": money(total - money(paid)),
    }


def reprice_enrollment(
    enrollment: SessionEtudiant,
    discount_percentage: Optional[float] = None,
    montant_paye: Optional[float] = None,
) -> None:
    """Apply a new discount and/or paid amount and re-derive the dependent fields."""
    total = money(enrollment.montant_total)
    if discount_percentage is not None:
        original = enrollment.formation_original_price
        if original is None:
            original = total + money(enrollment.discount_amount)
        original = money(original)
        enrollment.discount_percentage = float(discount_percentage)
        enrollment.discount_amount = money(original * float(discount_percentage) / 100)
        total = money(original - enrollment.discount_amount)
        enrollment.montant_total = total

    if montant_paye is not None:
        enrollment.montant_paye = money(montant_paye)

    if discount_percentage is not None or montant_paye is not None:
        enrollment.montant_du = money(total - money(enrollment.montant_paye))
        enrollment.statut_paiement = payment_status(enrollment.montant_paye, total)


def apply_payment(enrollment: SessionEtudiant, amount: float) -> None:
    """Add (or, with a negative amount, revert) a payment on the enrollment."""
    paid = money(money(enrollment.montant_paye) + amount)
    total = money(enrollment.montant_total)
    enrollment.montant_paye = paid
    enrollment.montant_du = money(total - paid)
    enrollment.statut_paiement = payment_status(paid, total)


def totals(enrollment: SessionEtudiant) -> dict:
    return {
        "montant_total": money(enrollment.montant_total),
        "montant_paye": money(enrollment.montant_paye),
        "montant_du": money(enrollment.montant_du),
        "statut_paiement": enrollment.statut_paiement,
    }
