from unittest.mock import MagicMock

import pulumi
import pytest

from zephyr.pulumi_resources import sequencing


def test_collector_install_order() -> None:
    sequencer = sequencing.ResourceSequencer()

    assert sequencer.producers(sequencing.CERT_MANAGER) == []
    assert sequencer.producers(sequencing.OTEL_OPERATOR) == [sequencing.CERT_MANAGER]
    assert sequencer.producers(sequencing.OTEL_COLLECTOR) == [sequencing.OTEL_OPERATOR]


def test_depends_on_registered_producers() -> None:
    sequencer = sequencing.ResourceSequencer()
    cert_manager = MagicMock(spec=pulumi.Resource)
    operator = MagicMock(spec=pulumi.Resource)

    sequencer.register(sequencing.CERT_MANAGER, cert_manager)
    assert sequencer.depends_on(sequencing.OTEL_OPERATOR) == [cert_manager]

    sequencer.register(sequencing.OTEL_OPERATOR, operator)
    assert sequencer.depends_on(sequencing.OTEL_COLLECTOR) == [operator]


def test_depends_on_unregistered_producer_fails() -> None:
    sequencer = sequencing.ResourceSequencer()

    with pytest.raises(ValueError, match="must be defined after 'cert-manager'"):
        sequencer.depends_on(sequencing.OTEL_OPERATOR)


def test_register_twice_fails() -> None:
    sequencer = sequencing.ResourceSequencer()
    sequencer.register(sequencing.CERT_MANAGER, MagicMock(spec=pulumi.Resource))

    with pytest.raises(ValueError, match="already registered"):
        sequencer.register(sequencing.CERT_MANAGER, MagicMock(spec=pulumi.Resource))


def test_options_without_producers_returns_given_opts() -> None:
    sequencer = sequencing.ResourceSequencer()
    opts = pulumi.ResourceOptions(protect=True)

    assert sequencer.options(sequencing.CERT_MANAGER, opts) is opts
    assert isinstance(sequencer.options(sequencing.CERT_MANAGER), pulumi.ResourceOptions)


def test_options_adds_depends_on() -> None:
    sequencer = sequencing.ResourceSequencer()
    cert_manager = MagicMock(spec=pulumi.Resource)
    sequencer.register(sequencing.CERT_MANAGER, cert_manager)

    opts = sequencer.options(sequencing.OTEL_OPERATOR, pulumi.ResourceOptions(protect=True))

    assert opts.protect is True
    assert list(opts.depends_on) == [cert_manager]


def test_custom_edges() -> None:
    sequencer = sequencing.ResourceSequencer([sequencing.DependencyEdge(producer="a", consumer="b")])

    assert sequencer.producers("b") == ["a"]
    assert sequencer.producers(sequencing.OTEL_OPERATOR) == []
