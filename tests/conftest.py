from __future__ import annotations

import pytest

MEMBRANE_CREATE = "cpblty://membrane.amzn-us-east-1.capability.io/#CPBLTY1-createMembraneTokenAAAA"
MEMBRANE_EXPORT = "cpblty://membrane.amzn-us-east-1.capability.io/#CPBLTY1-exportMembraneTokenBBBB"
MEMBRANE_QUERY = "cpblty://membrane.amzn-us-east-1.capability.io/#CPBLTY1-queryMembraneTokenCCCC"
DOMAIN_CREATE = "cpblty://certificate-manager.amzn-us-east-1.capability.io/#CPBLTY1-createDomainToken12"
RECEIVE_CERT = "cpblty://membrane.amzn-us-east-1.capability.io/#CPBLTY1-receiveCertificate12"
UPDATE_CHALLENGE = "cpblty://membrane.amzn-us-east-1.capability.io/#CPBLTY1-updateChallenge123"
SEND_EMAIL = "cpblty://media.amzn-us-east-1.capability.io/#CPBLTY1-sendEmailTokenDDDD"


@pytest.fixture(autouse=True)
def capi_home(tmp_path, monkeypatch):
    home = tmp_path / "capability"
    monkeypatch.setenv("CAPI_HOME", str(home))
    return home
