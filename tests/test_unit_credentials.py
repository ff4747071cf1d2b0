import pytest

from aggregator.config import AccountRef
from aggregator.errors import CredentialError, UpstreamHTTPError
from aggregator.integrations import MetaIntegration, NewsBreakIntegration, SnapIntegration
from aggregator.services.credentials import CredentialResolver

from conftest import fixture_config

TOKEN_URL = "https://accounts.snapchat.com/login/oauth2/access_token"


def test_refresh_exchange_happens_once_per_batch(fake_http, run):
    fake_http.on_post(TOKEN_URL, {"access_token": "fresh"})
    config = fixture_config()
    resolver = CredentialResolver(config, fake_http)

    resolved = run(resolver.resolve(SnapIntegration(fake_http), config.accounts_for("snap")))

    assert resolved.tokens == {"snap-1": "fresh", "snap-2": "fresh"}
    posts = fake_http.calls_to(TOKEN_URL, method="POST")
    assert len(posts) == 1
    assert posts[0]["grant_type"] == "refresh_token"
    assert posts[0]["refresh_token"] == "refresh"


def test_refresh_exchange_failure_raises_credential_error(fake_http, run):
    fake_http.on_post(TOKEN_URL, UpstreamHTTPError(401, "invalid_grant", TOKEN_URL))
    config = fixture_config()
    resolver = CredentialResolver(config, fake_http)

    with pytest.raises(CredentialError, match="token exchange failed"):
        run(resolver.resolve(SnapIntegration(fake_http), config.accounts_for("snap")))


def test_refresh_response_without_token(fake_http, run):
    fake_http.on_post(TOKEN_URL, {"error": "nope"})
    config = fixture_config()
    with pytest.raises(CredentialError):
        run(CredentialResolver(config, fake_http).resolve(SnapIntegration(fake_http), config.accounts_for("snap")))


def test_missing_oauth_client_settings(fake_http, run):
    config = fixture_config(oauth_clients={})
    with pytest.raises(CredentialError, match="OAuth client settings missing"):
        run(CredentialResolver(config, fake_http).resolve(SnapIntegration(fake_http), config.accounts_for("snap")))
    assert fake_http.calls == []


def test_static_tokens_need_no_network(fake_http, run):
    config = fixture_config()
    resolver = CredentialResolver(config, fake_http)

    meta = run(resolver.resolve(MetaIntegration(fake_http), config.accounts_for("meta")))
    nb = run(resolver.resolve(NewsBreakIntegration(fake_http), config.accounts_for("newsbreak")))

    assert meta.tokens == {"act_100": "meta-token-1", "200": "meta-token-2"}
    assert nb.tokens == {"nb-1": "nb-token"}
    assert fake_http.calls == []


def test_meta_account_without_token_is_reported_missing(fake_http, run):
    config = fixture_config(static_tokens={"bm_one": "meta-token-1"})
    resolved = run(CredentialResolver(config, fake_http).resolve(MetaIntegration(fake_http), config.accounts_for("meta")))
    assert resolved.token_for(AccountRef(platform="meta", account_id="act_100")) == "meta-token-1"
    assert "200" in resolved.missing


def test_platform_without_any_static_token_reports_every_account(fake_http, run):
    config = fixture_config(static_tokens={})
    resolver = CredentialResolver(config, fake_http)

    nb = run(resolver.resolve(NewsBreakIntegration(fake_http), config.accounts_for("newsbreak")))
    meta = run(resolver.resolve(MetaIntegration(fake_http), config.accounts_for("meta")))

    assert nb.tokens == {}
    assert "newsbreak" in nb.missing["nb-1"]
    assert meta.tokens == {}
    assert set(meta.missing) == {"act_100", "200"}
    assert fake_http.calls == []


def test_no_accounts_skips_resolution(fake_http, run):
    config = fixture_config(oauth_clients={})
    resolved = run(CredentialResolver(config, fake_http).resolve(SnapIntegration(fake_http), ()))
    assert resolved.tokens == {}
