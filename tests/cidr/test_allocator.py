import itertools

import pytest

from globalcidr.cidr.allocator import allocate_block
from globalcidr.cidr.primitives import overlaps
from globalcidr.errors import AllocationSizeError, InvalidCIDRError, PoolExhaustedError

POOL = "169.254.0.0/16"
SIZE = 8192


def test_first_allocation_starts_at_pool_base():
    assert allocate_block(POOL, SIZE, []) == "169.254.0.0/19"


def test_next_allocation_follows_existing_block():
    assert allocate_block(POOL, SIZE, ["169.254.0.0/19"]) == "169.254.32.0/19"


def test_gap_between_blocks_is_filled_first():
    assert allocate_block(POOL, SIZE, ["169.254.0.0/19", "169.254.64.0/19"]) == "169.254.32.0/19"


def test_free_block_at_beginning_is_used():
    assert allocate_block(POOL, SIZE, ["169.254.32.0/19"]) == "169.254.0.0/19"


def test_two_blocks_at_beginning():
    assert allocate_block(POOL, SIZE, ["169.254.0.0/19", "169.254.32.0/19"]) == "169.254.64.0/19"


def test_pool_fully_split_is_exhausted():
    with pytest.raises(PoolExhaustedError) as ei:
        allocate_block(POOL, 32768, ["169.254.0.0/17", "169.254.128.0/17"])
    assert ei.value.pool == POOL
    assert ei.value.size == 32768


def test_not_enough_space_for_new_block():
    with pytest.raises(PoolExhaustedError):
        allocate_block(POOL, 32768, ["169.254.0.0/17", "169.254.192.0/18"])


def test_sequential_allocations_never_overlap():
    allocated = []
    for _ in range(8):
        cidr = allocate_block(POOL, SIZE, allocated)
        assert not overlaps(allocated, cidr)
        allocated.append(cidr)

    assert allocated[-1] == "169.254.224.0/19"
    with pytest.raises(PoolExhaustedError):
        allocate_block(POOL, SIZE, allocated)


def test_result_does_not_depend_on_input_order():
    blocks = ["169.254.0.0/19", "169.254.64.0/19", "169.254.96.0/20", "169.254.160.0/19"]
    results = {allocate_block(POOL, SIZE, list(p)) for p in itertools.permutations(blocks)}
    assert results == {"169.254.32.0/19"}


def test_smaller_allocated_block_inside_candidate_is_skipped():
    assert allocate_block("10.0.0.0/24", 64, ["10.0.0.16/28"]) == "10.0.0.64/26"


def test_larger_allocated_block_covering_candidate_is_skipped():
    assert allocate_block("10.0.0.0/24", 64, ["10.0.0.0/25"]) == "10.0.0.128/26"


def test_gap_smaller_than_block_is_not_used():
    # 10.0.0.0/28 is free but too small for a /26 next to 10.0.0.16/28
    assert allocate_block("10.0.0.0/24", 64, ["10.0.0.16/28", "10.0.0.64/26"]) == "10.0.0.128/26"


def test_size_is_rounded_up_to_power_of_two():
    assert allocate_block("242.0.0.0/8", 5000, []) == "242.0.0.0/19"


def test_pool_with_host_bits_uses_masked_base():
    assert allocate_block("10.0.0.5/24", 64, []) == "10.0.0.0/26"


@pytest.mark.parametrize("size", [0, 32769, 65536])
def test_bad_size_fails_before_probing(size):
    with pytest.raises(AllocationSizeError):
        allocate_block(POOL, size, ["not-even-parsed"])


def test_unparsable_allocated_block_raises():
    with pytest.raises(InvalidCIDRError, match="unable to parse allocated CIDR"):
        allocate_block(POOL, SIZE, ["169.254.0.0/33"])


def test_allocation_is_deterministic():
    allocated = ["169.254.32.0/19", "169.254.128.0/17"]
    assert allocate_block(POOL, SIZE, allocated) == allocate_block(POOL, SIZE, allocated)
