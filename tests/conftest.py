import pytest

from bfsverify.config import VerifyConfig
from bfsverify.context import VerificationContext
from bfsverify.loopback import LoopbackBinding


@pytest.fixture
def make_ctx():
    """Open a VerificationContext around a binding; closed again at teardown."""
    opened = []

    def _make(binding=None, **config):
        ctx = VerificationContext(VerifyConfig(**config),
                                  binding if binding is not None else LoopbackBinding())
        opened.append(ctx.__enter__())
        return ctx

    yield _make
    for ctx in opened:
        ctx.__exit__(None, None, None)


@pytest.fixture
def ctx(make_ctx):
    return make_ctx()
