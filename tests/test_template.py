"""
Tests for dsdk.core.template.
"""

import pytest

from dsdk.core.errors import ConfigError, TemplateError
from dsdk.core.template import (
    CONN_TEMPLATE,
    SECURE_CONN_TEMPLATE,
    render_template,
    template_fields,
)


URL_VALUES = {"hostname": "10.0.0.1", "port": "7717", "version": "2.2", "endpoint": "app_instances"}


class TestRenderTemplate:
    """Tests for render_template."""

    @pytest.mark.parametrize("hostname,port,version,endpoint", [
        ("10.0.0.1", "7717", "2.2", "app_instances"),
        ("storage.example.com", "443", "2.1", "system/network"),
        ("h", "1", "3", ""),
    ])
    def test_scheme_follows_template(self, hostname, port, version, endpoint):
        values = {"hostname": hostname, "port": port, "version": version, "endpoint": endpoint}
        secure = render_template(SECURE_CONN_TEMPLATE, values)
        insecure = render_template(CONN_TEMPLATE, values)
        assert secure.startswith("https://")
        assert insecure.startswith("http://")
        assert secure == f"https://{hostname}:{port}/v{version}/{endpoint}"

    def test_unreferenced_key_fails(self):
        values = dict(URL_VALUES, tenant="/root")
        with pytest.raises(TemplateError, match="tenant"):
            render_template(CONN_TEMPLATE, values)

    def test_missing_value_fails(self):
        values = dict(URL_VALUES)
        del values["port"]
        with pytest.raises(TemplateError):
            render_template(CONN_TEMPLATE, values)

    def test_invalid_template_fails(self):
        with pytest.raises(TemplateError, match="Invalid template"):
            render_template("http://{hostname", {"hostname": "h"})

    def test_positional_placeholder_fails(self):
        with pytest.raises(TemplateError):
            render_template("http://{}/", {})

    def test_pairs_accepted(self):
        assert render_template("{a}-{b}", ["a=1", "b=x=y"]) == "1-x=y"

    def test_bad_pair_fails(self):
        with pytest.raises(TemplateError):
            render_template("{a}", ["a"])

    def test_template_error_is_config_error(self):
        assert issubclass(TemplateError, ConfigError)


def test_template_fields():
    assert template_fields(CONN_TEMPLATE) == {"hostname", "port", "version", "endpoint"}
    assert template_fields("no placeholders") == set()
