import io
from importlib import metadata


def _report_version(msgs, dist):
    try:
        version = metadata.version(dist)
    except metadata.PackageNotFoundError:
        version = "<NOT FOUND>"
    msgs.write("{}: {}\n".format(dist, version))


def pytest_report_header(config):
    msgs = io.StringIO()
    for dist in ["web3", "eth-tester", "py-evm"]:
        _report_version(msgs, dist)

    return msgs.getvalue()
