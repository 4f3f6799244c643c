"""Tests for wren.modules.registry — lookup by name and alias."""

import pytest

from wren.app import App
from wren.errors import ConfigurationError
from wren.modules.definition import ModuleDefinition
from wren.modules.module import Module
from wren.modules.registry import ModuleRegistry


def _module(app: App, name: str, alias: str | None = None) -> Module:
    options = {"alias": alias} if alias else {}
    return Module((ModuleDefinition(name=name, options=options),), app)


@pytest.fixture
def app() -> App:
    return App()


class TestRegister:
    def test_lookup_by_name(self, app: App) -> None:
        registry = ModuleRegistry()
        article = _module(app, "article")
        registry.register(article)
        assert registry.lookup("article") is article

    def test_lookup_by_alias(self, app: App) -> None:
        registry = ModuleRegistry()
        article = _module(app, "@acme/article", alias="article")
        registry.register(article)
        assert registry.lookup("article") is article
        assert registry.lookup("@acme/article") is article

    def test_lookup_missing(self) -> None:
        assert ModuleRegistry().lookup("nope") is None

    def test_duplicate_name(self, app: App) -> None:
        registry = ModuleRegistry()
        registry.register(_module(app, "article"))
        with pytest.raises(ConfigurationError, match="'article'"):
            registry.register(_module(app, "article"))

    def test_alias_matches_other_name(self, app: App) -> None:
        registry = ModuleRegistry()
        registry.register(_module(app, "article"))
        with pytest.raises(ConfigurationError, match="alias"):
            registry.register(_module(app, "blog", alias="article"))

    def test_name_matches_other_alias(self, app: App) -> None:
        registry = ModuleRegistry()
        registry.register(_module(app, "blog", alias="article"))
        with pytest.raises(ConfigurationError):
            registry.register(_module(app, "article"))

    def test_alias_equal_to_own_name(self, app: App) -> None:
        registry = ModuleRegistry()
        with pytest.raises(ConfigurationError, match="alias"):
            registry.register(_module(app, "article", alias="article"))

    def test_alias_shadowing_registry_attribute(self, app: App) -> None:
        registry = ModuleRegistry()
        with pytest.raises(ConfigurationError, match="core feature"):
            registry.register(_module(app, "article", alias="lookup"))

    def test_name_shadowing_registry_attribute(self, app: App) -> None:
        registry = ModuleRegistry()
        with pytest.raises(ConfigurationError):
            registry.register(_module(app, "freeze"))

    def test_failed_register_leaves_registry_unchanged(self, app: App) -> None:
        registry = ModuleRegistry()
        registry.register(_module(app, "article"))
        with pytest.raises(ConfigurationError):
            registry.register(_module(app, "page", alias="article"))
        assert "page" not in registry
        assert len(registry) == 1

    def test_shared_action_prefix(self, app: App) -> None:
        registry = ModuleRegistry()
        shared = {"action": "/api/v1/shared"}
        registry.register(Module((ModuleDefinition(name="article", options=shared),), app))
        with pytest.raises(ConfigurationError, match="action prefix"):
            registry.register(Module((ModuleDefinition(name="page", options=shared),), app))
        assert "page" not in registry

    def test_action_prefix_trailing_slash(self, app: App) -> None:
        registry = ModuleRegistry()
        registry.register(_module(app, "article"))
        clash = ModuleDefinition(name="blog", options={"action": "/api/v1/article/"})
        with pytest.raises(ConfigurationError, match="'article' already uses"):
            registry.register(Module((clash,), app))

    async def test_app_refuses_to_boot(self) -> None:
        app = App()
        app.module(ModuleDefinition(name="article", options={"action": "/shared"}))
        app.module(ModuleDefinition(name="page", options={"action": "/shared"}))
        with pytest.raises(ConfigurationError, match="action prefix"):
            await app.boot()


class TestAccess:
    def test_attribute_access(self, app: App) -> None:
        registry = ModuleRegistry()
        article = _module(app, "@acme/article", alias="article")
        registry.register(article)
        assert registry.article is article

    def test_attribute_missing(self) -> None:
        with pytest.raises(AttributeError, match="No module named 'nope'"):
            _ = ModuleRegistry().nope

    def test_getitem(self, app: App) -> None:
        registry = ModuleRegistry()
        article = _module(app, "article")
        registry.register(article)
        assert registry["article"] is article
        with pytest.raises(KeyError):
            registry["page"]

    def test_contains(self, app: App) -> None:
        registry = ModuleRegistry()
        registry.register(_module(app, "article", alias="art"))
        assert "article" in registry
        assert "art" in registry
        assert "page" not in registry
        assert 42 not in registry

    def test_iteration_in_registration_order(self, app: App) -> None:
        registry = ModuleRegistry()
        for name in ("page", "article", "image"):
            registry.register(_module(app, name, alias=f"{name}-alias"))
        assert [m.name for m in registry] == ["page", "article", "image"]
        assert len(registry) == 3


class TestFreeze:
    def test_register_after_freeze(self, app: App) -> None:
        registry = ModuleRegistry()
        registry.freeze()
        assert registry.frozen is True
        with pytest.raises(RuntimeError, match="after routes are compiled"):
            registry.register(_module(app, "article"))

    def test_freeze_freezes_modules(self, app: App) -> None:
        registry = ModuleRegistry()
        article = _module(app, "article")
        registry.register(article)
        registry.freeze()
        assert article.frozen is True
        with pytest.raises(AttributeError, match="frozen"):
            article.action = "/elsewhere"
