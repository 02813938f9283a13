from gpufeatures.spec import (
    Config,
    ReplicatedResource,
    ReplicatedResources,
    Sharing,
    SharingStrategy,
)


def _resources(*replicas):
    return ReplicatedResources(resources=[ReplicatedResource(replicas=r) for r in replicas])


def test_empty_config_has_no_sharing():
    assert Config().sharing.sharing_strategy() is SharingStrategy.NONE


def test_time_slicing_replicas():
    sharing = Sharing(time_slicing=_resources(2))
    assert sharing.sharing_strategy() is SharingStrategy.TIME_SLICING


def test_mps_with_single_replica_is_not_mps():
    sharing = Sharing(mps=_resources(1))
    assert sharing.sharing_strategy() is not SharingStrategy.MPS
    assert sharing.sharing_strategy() is SharingStrategy.NONE


def test_mps_with_replicas():
    sharing = Sharing(mps=_resources(2))
    assert sharing.sharing_strategy() is SharingStrategy.MPS


def test_replicated_resources_defaults_to_time_slicing():
    time_slicing = _resources(3)
    sharing = Sharing(time_slicing=time_slicing)
    assert sharing.replicated_resources() is time_slicing


def test_replicated_resources_uses_mps_when_active():
    mps = _resources(2)
    sharing = Sharing(time_slicing=_resources(4), mps=mps)
    assert sharing.replicated_resources() is mps


def test_is_shared_invariant():
    assert _resources(1, 1).is_shared() is False
    assert _resources(1, 2).is_shared() is True
    assert ReplicatedResources().is_shared() is False