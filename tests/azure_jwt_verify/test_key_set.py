import json

import pytest

import azure_jwt_verify as m


def test_parses_keys_in_provider_order(discovery_payload, certificate_body: str):
    keys = m.parse_key_set(json.dumps(discovery_payload))

    assert [k.kid for k in keys] == [k["kid"] for k in discovery_payload["keys"]]
    assert keys[1].x5c == certificate_body
    assert keys[1].kty == "RSA"
    assert keys[1].use == "sig"
    assert keys[1].e == "AQAB"


def test_accepts_plain_string_x5c():
    body = json.dumps({"keys": [{"kid": "k1", "x5c": "MIIC"}]})
    (key,) = m.parse_key_set(body)
    assert key.x5c == "MIIC"


def test_accepts_bytes_body():
    assert m.parse_key_set(b'{"keys": []}') == ()


@pytest.mark.parametrize(
    "body",
    [
        "not json",
        '["keys"]',
        '{"foo": "bar"}',
        '{"keys": "nope"}',
        '{"keys": ["k1"]}',
        '{"keys": [{"kid": "k1"}]}',
        '{"keys": [{"kid": "k1", "x5c": ""}]}',
        '{"keys": [{"kid": "k1", "x5c": []}]}',
        '{"keys": [{"kid": "k1", "x5c": "MIIC"}, {"kid": "k2", "x5c": null}]}',
    ],
)
def test_rejects_malformed_documents(body: str):
    with pytest.raises(ValueError):
        m.parse_key_set(body)
