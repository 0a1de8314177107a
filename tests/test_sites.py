from pricewatch.extractors.sites import SiteFamily, SiteResolver, resolve_site


def test_resolves_known_site_families():
    assert resolve_site("https://urun.n11.com/telefon/abc-123") is SiteFamily.N11
    assert resolve_site("https://www.hepsiburada.com/urun-p-HB0001") is SiteFamily.HEPSIBURADA
    assert resolve_site("https://www.gittigidiyor.com/urun/xyz") is SiteFamily.GITTIGIDIYOR


def test_unknown_and_malformed_links_fall_back_to_default():
    assert resolve_site("https://example.com/product") is SiteFamily.GITTIGIDIYOR
    assert resolve_site("not a url at all") is SiteFamily.GITTIGIDIYOR
    assert resolve_site("") is SiteFamily.GITTIGIDIYOR


def test_n11_requires_product_subdomain():
    # Only product pages on urun.n11 are classified as n11
    assert resolve_site("https://www.n11.com/kampanya") is SiteFamily.GITTIGIDIYOR


def test_custom_rules_are_pluggable():
    resolver = SiteResolver(rules=[("shop.test", SiteFamily.N11)], default=SiteFamily.HEPSIBURADA)

    assert resolver.resolve("https://shop.test/p/1") is SiteFamily.N11
    assert resolver("https://urun.n11.com/p/1") is SiteFamily.HEPSIBURADA
