"""Unit tests for challenge proof values and challenge selection."""

import base64
import hashlib

import pytest
from conftest import FakeAcmeClient, make_authorization, make_certificate

from acmeprep.challenges import (
    challenge_for_authorization,
    compute_dns_txt_value,
    compute_key_authorization,
    dns01_provider_for,
    key_for_challenge,
    pick_challenge_type,
)
from acmeprep.exceptions import (
    ChallengeSelectionError,
    ConfigurationError,
    UnsupportedChallengeTypeError,
)
from acmeprep.models import (
    Challenge,
    ChallengeType,
    DomainConfig,
    Dns01Config,
    Http01Config,
    IssuerConfig,
    IssuerDns01Config,
    IssuerHttp01Config,
)


class TestKeyAuthorization:
    """Tests for key authorization computation."""

    def test_compute_key_authorization(self):
        """Key authorization is token.thumbprint."""
        assert compute_key_authorization("abc123", "xyz789") == "abc123.xyz789"


class TestDnsTxtValue:
    """Tests for DNS TXT record value computation."""

    def test_compute_dns_txt_value(self):
        """TXT value is base64url(sha256(keyauth)) without padding."""
        keyauth = "test-key-authorization"

        txt_value = compute_dns_txt_value(keyauth)

        expected = (
            base64.urlsafe_b64encode(hashlib.sha256(keyauth.encode()).digest())
            .rstrip(b"=")
            .decode()
        )
        assert txt_value == expected
        assert len(txt_value) == 43
        assert "=" not in txt_value


class TestKeyForChallenge:
    """Tests for deriving the proof value of a challenge."""

    def test_http01_uses_challenge_response(self):
        challenge = Challenge(type="http-01", url="https://acme.test/c/1", token="T")
        assert key_for_challenge(FakeAcmeClient(), challenge) == "T.thumbprint"

    def test_dns01_uses_record_value(self):
        challenge = Challenge(type="dns-01", url="https://acme.test/c/1", token="T")
        assert key_for_challenge(FakeAcmeClient(), challenge) == "txt-T"

    def test_unsupported_type(self):
        challenge = Challenge(type="tls-alpn-01", url="https://acme.test/c/1", token="T")
        with pytest.raises(UnsupportedChallengeTypeError, match="unsupported challenge type"):
            key_for_challenge(FakeAcmeClient(), challenge)

    def test_same_value_every_call(self):
        client = FakeAcmeClient()
        challenge = Challenge(type="dns-01", url="https://acme.test/c/1", token="T")
        assert key_for_challenge(client, challenge) == key_for_challenge(client, challenge)


class TestPickChallengeType:
    """Tests for pick_challenge_type."""

    def test_issuer_disabled_type_skipped(self):
        """dns-01 is offered first but not provisioned on the issuer."""
        configs = [DomainConfig(domains=["a.com"], http01=Http01Config())]
        issuer = IssuerConfig(server="https://acme.test", http01=IssuerHttp01Config())
        authorization = make_authorization("a.com", challenges=[("dns-01", "D"), ("http-01", "H")])

        assert pick_challenge_type("a.com", authorization, configs, issuer) == "http-01"

    def test_server_order_wins(self, issuer: IssuerConfig):
        configs = [
            DomainConfig(domains=["a.com"], http01=Http01Config(), dns01=Dns01Config(provider="p"))
        ]
        authorization = make_authorization("a.com", challenges=[("dns-01", "D"), ("http-01", "H")])

        assert pick_challenge_type("a.com", authorization, configs, issuer) == ChallengeType.DNS_01

    def test_domain_disabled_type_skipped(self, issuer: IssuerConfig):
        configs = [DomainConfig(domains=["a.com"], dns01=Dns01Config(provider="p"))]
        authorization = make_authorization("a.com", challenges=[("http-01", "H"), ("dns-01", "D")])

        assert pick_challenge_type("a.com", authorization, configs, issuer) == ChallengeType.DNS_01

    def test_unsupported_offered_types_ignored(self, issuer: IssuerConfig):
        configs = [DomainConfig(domains=["a.com"], http01=Http01Config())]
        authorization = make_authorization(
            "a.com", challenges=[("tls-alpn-01", "X"), ("http-01", "H")]
        )

        assert pick_challenge_type("a.com", authorization, configs, issuer) == ChallengeType.HTTP_01

    def test_later_entry_for_same_domain(self, issuer: IssuerConfig):
        """An entry with no usable type does not stop later entries naming the domain."""
        configs = [
            DomainConfig(domains=["a.com"], dns01=Dns01Config(provider="p")),
            DomainConfig(domains=["a.com"], http01=Http01Config()),
        ]
        authorization = make_authorization("a.com", challenges=[("http-01", "H")])

        assert pick_challenge_type("a.com", authorization, configs, issuer) == ChallengeType.HTTP_01

    def test_domain_not_configured(self, issuer: IssuerConfig):
        configs = [DomainConfig(domains=["other.com"], http01=Http01Config())]
        authorization = make_authorization("a.com")

        with pytest.raises(ChallengeSelectionError, match="no configured and supported"):
            pick_challenge_type("a.com", authorization, configs, issuer)

    def test_no_type_enabled_on_both_levels(self):
        configs = [DomainConfig(domains=["a.com"], http01=Http01Config())]
        issuer = IssuerConfig(server="https://acme.test", dns01=IssuerDns01Config())
        authorization = make_authorization("a.com", challenges=[("http-01", "H"), ("dns-01", "D")])

        with pytest.raises(ChallengeSelectionError):
            pick_challenge_type("a.com", authorization, configs, issuer)


class TestChallengeForAuthorization:
    """Tests for challenge_for_authorization."""

    def test_returns_offered_challenge(self, issuer: IssuerConfig):
        certificate = make_certificate(["a.com"])
        authorization = make_authorization("a.com", challenges=[("dns-01", "D"), ("http-01", "H")])

        challenge = challenge_for_authorization(certificate, authorization, issuer)

        assert challenge.type == "http-01"
        assert challenge.token == "H"

    def test_selection_error_names_domain(self, issuer: IssuerConfig):
        certificate = make_certificate(["other.com"])
        authorization = make_authorization("a.com")

        with pytest.raises(ChallengeSelectionError, match="for domain 'a.com'"):
            challenge_for_authorization(certificate, authorization, issuer)


class TestDns01ProviderFor:
    """Tests for resolving a domain's DNS-01 provider against the issuer."""

    def test_provider_on_issuer(self, issuer: IssuerConfig):
        certificate = make_certificate(["a.com"], http01=False, dns01_provider="pdns")
        assert dns01_provider_for(certificate, "a.com", issuer) == "pdns"

    def test_provider_missing_from_issuer(self, issuer: IssuerConfig):
        certificate = make_certificate(["a.com"], http01=False, dns01_provider="route53")

        with pytest.raises(ConfigurationError, match="'route53' for domain 'a.com'"):
            dns01_provider_for(certificate, "a.com", issuer)

    def test_issuer_without_dns01(self):
        issuer = IssuerConfig(server="https://acme.test/directory", http01=IssuerHttp01Config())
        certificate = make_certificate(["a.com"], http01=False, dns01_provider="pdns")

        with pytest.raises(ConfigurationError, match="not configured on the issuer"):
            dns01_provider_for(certificate, "a.com", issuer)

    def test_domain_without_dns01(self, issuer: IssuerConfig):
        certificate = make_certificate(["a.com"])

        with pytest.raises(ConfigurationError, match="no dns-01 configuration"):
            dns01_provider_for(certificate, "a.com", issuer)
