from core.settings import PaymentSettings


def test_nested_env_names_configure_razorpay(monkeypatch):
    monkeypatch.setenv("RAZORPAY__KEY_ID", "rzp_nested")
    monkeypatch.setenv("RAZORPAY__API_BASE", "https://razorpay.test/v1")

    s = PaymentSettings(_env_file=None)

    assert s.razorpay.key_id == "rzp_nested"
    assert s.razorpay.api_base == "https://razorpay.test/v1"
    # Flat names still fill what the nested ones leave out
    assert s.razorpay.key_secret == "rzp_test_secret"


def test_flat_names_are_read_from_dotenv(monkeypatch, tmp_path):
    monkeypatch.delenv("RAZORPAY_ID", raising=False)
    monkeypatch.delenv("RAZORPAY_WEBHOOK_SECRET", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("RAZORPAY_ID=rzp_from_dotenv\nRAZORPAY_WEBHOOK_SECRET=whsec_from_dotenv\n")

    s = PaymentSettings(_env_file=str(env_file))

    assert s.razorpay.key_id == "rzp_from_dotenv"
    assert s.razorpay.webhook_secret == "whsec_from_dotenv"
    assert s.provider_configs()[0].options["key_id"] == "rzp_from_dotenv"


def test_flat_names_from_environment(monkeypatch):
    s = PaymentSettings(_env_file=None)

    assert s.razorpay.key_id == "rzp_test_key"
    assert s.razorpay.key_secret == "rzp_test_secret"
    assert s.razorpay.webhook_secret == "whsec_test"
