import pytest

from intelliconsult.exceptions import ExternalServiceFailure

from conftest import expected_signature

razorpay = pytest.importorskip("razorpay")

from intelliconsult.infrastructure.payments.razorpay_gateway import RazorpayGateway  # noqa: E402


def test_gateway_needs_credentials():
    with pytest.raises(ExternalServiceFailure):
        RazorpayGateway("", "")


def test_signature_checked_by_sdk():
    gateway = RazorpayGateway("rzp_test_key", "rzp_test_secret")
    good = expected_signature("order_1", "pay_1", "rzp_test_secret")
    assert gateway.verify_signature("order_1", "pay_1", good) is True


def test_bad_signature_is_false_not_an_error():
    gateway = RazorpayGateway("rzp_test_key", "rzp_test_secret")
    assert gateway.verify_signature("order_1", "pay_1", "bogus") is False
    other_key = expected_signature("order_1", "pay_1", "another_secret")
    assert gateway.verify_signature("order_1", "pay_1", other_key) is False
    # Signature for a different payment on the same order
    swapped = expected_signature("order_1", "pay_2", "rzp_test_secret")
    assert gateway.verify_signature("order_1", "pay_1", swapped) is False
