import threading

from golwarc.domain.visited_set import VisitedSet


def test_first_claim_wins():
    visited = VisitedSet()
    assert visited.try_claim("https://example.com")
    assert not visited.try_claim("https://example.com")


def test_different_urls_claimed_independently():
    visited = VisitedSet()
    assert visited.try_claim("https://example.com")
    assert visited.try_claim("https://other.com")
    assert visited.count() == 2
    assert "https://example.com" in visited
    assert not visited.contains("https://third.com")


def test_clear_on_empty_set_is_idempotent():
    visited = VisitedSet()
    visited.clear()
    visited.clear()
    assert visited.count() == 0


def test_clear_allows_urls_to_be_claimed_again():
    visited = VisitedSet()
    urls = [f"https://example.com/{i}" for i in range(10)]
    for u in urls:
        visited.try_claim(u)
    assert len(visited) == 10

    visited.clear()
    assert visited.count() == 0
    assert all(visited.try_claim(u) for u in urls)


def test_concurrent_claims_have_exactly_one_winner():
    visited = VisitedSet()
    threads_count = 32
    barrier = threading.Barrier(threads_count)
    results = []
    results_lock = threading.Lock()

    def claim():
        barrier.wait()
        won = visited.try_claim("https://example.com/contested")
        with results_lock:
            results.append(won)

    threads = [threading.Thread(target=claim) for _ in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert len(results) == threads_count
    assert visited.count() == 1
