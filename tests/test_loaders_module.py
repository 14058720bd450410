"""Module activation and teardown through the loaders."""

from __future__ import annotations

import pytest

from cogwork.command import Command, CommandOptions, CommandPermissions
from cogwork.errors import DuplicateRegistrationError, NotRegisteredError
from cogwork.events import Event
from cogwork.listener import Listener
from cogwork.loaders import Loader
from cogwork.module import Module


class Greeter(Listener):
    label = "greeter"
    event_name = "message_create"

    async def execute(self, event: Event) -> None:
        return None


class Farewell(Listener):
    label = "farewell"
    event_name = "member_remove"

    async def execute(self, event: Event) -> None:
        return None


class Ping(Command):
    label = "ping"


class Echo(Command):
    label = "echo"
    options = CommandOptions(hidden=True)


class Fun(Module):
    label = "fun"

    def setup(self) -> None:
        self.init(commands=[Ping, Echo], listeners=[Greeter, Farewell])


class TestModuleInit:
    def test_init_registers_everything(self, app, library) -> None:
        module = Fun(app)
        module.setup()

        assert module.commands.keys() == ["ping", "echo"]
        assert module.listeners.keys() == ["greeter", "farewell"]
        assert app.command_registry.labels() == ["ping", "echo"]
        assert app.listener_registry.labels() == ["greeter", "farewell"]
        assert library.active == {"message_create": 1, "member_remove": 1}

    def test_commands_inherit_module_defaults(self, app) -> None:
        permissions = CommandPermissions(staff_only=True)
        module = Module(app, label="admin", permissions=permissions)
        module.init(commands=[Ping, Echo])

        ping = module.commands.get("ping")
        echo = module.commands.get("echo")
        assert ping.permissions is permissions
        assert ping.options is module.options
        assert echo.options.hidden is True

    def test_second_init_raises_duplicate(self, app) -> None:
        module = Fun(app)
        module.setup()

        with pytest.raises(DuplicateRegistrationError) as exc:
            module.init(commands=[Ping])

        assert exc.value.label == "ping"
        assert exc.value.module == "fun"
        assert module.commands.size == 2

    def test_listener_failure_keeps_commands(self, app, library) -> None:
        other = Module(app, label="other")
        other.init(listeners=[Greeter])
        module = Fun(app)

        with pytest.raises(DuplicateRegistrationError) as exc:
            module.setup()

        assert exc.value.label == "greeter"
        assert module.commands.keys() == ["ping", "echo"]
        assert module.listeners.keys() == []
        assert app.command_registry.labels() == ["ping", "echo"]
        assert app.listener_registry.get("greeter").module is other

    def test_command_failure_still_loads_listeners(self, app, library) -> None:
        other = Module(app, label="other")
        other.init(commands=[Echo])
        module = Fun(app)

        with pytest.raises(DuplicateRegistrationError) as exc:
            module.setup()

        assert exc.value.label == "echo"
        assert exc.value.module == "fun"
        assert module.commands.keys() == ["ping"]
        assert module.listeners.keys() == ["greeter", "farewell"]

    def test_foreign_entity_is_refused(self, app) -> None:
        other = Module(app, label="other")
        module = Module(app, label="fun")

        with pytest.raises(ValueError, match="another module"):
            module.init(commands=[Ping(other)])
        assert module.commands.size == 0

    def test_wrong_kind_is_refused(self, app) -> None:
        module = Module(app, label="fun")
        with pytest.raises(TypeError):
            module.init(listeners=[Ping])

    def test_module_without_label(self, app) -> None:
        with pytest.raises(ValueError):
            Module(app)


class TestTeardown:
    def test_teardown_after_partial_activation_leaves_nothing(
        self, app, library
    ) -> None:
        other = Module(app, label="other")
        other.init(listeners=[Farewell])
        module = Fun(app)
        with pytest.raises(DuplicateRegistrationError):
            module.setup()

        module.teardown()
        other.teardown()

        assert library.active == {}
        assert app.listener_registry.size == 0
        assert app.command_registry.size == 0
        assert app.event_manager.events == ()

    def test_teardown_tolerates_already_unregistered(self, app, library) -> None:
        module = Fun(app)
        module.setup()
        app.listener_registry.unregister("greeter")
        app.command_registry.unregister("ping")

        module.teardown()

        assert module.commands.size == 0
        assert module.listeners.size == 0
        assert library.active == {}

    def test_unload_unknown_label_raises(self, app) -> None:
        module = Fun(app)
        with pytest.raises(NotRegisteredError):
            module.listener_loader.unload("greeter")

    def test_reload_after_teardown(self, app, library) -> None:
        module = Fun(app)
        module.setup()
        module.teardown()
        module.setup()

        assert library.active == {"message_create": 1, "member_remove": 1}
        assert len(library.subscribe_calls) == 4
        assert len(library.unsubscribe_calls) == 2


class TestLoaderBase:
    def test_base_loader_needs_container_and_registry(self, app) -> None:
        with pytest.raises(TypeError, match="abstract"):
            Loader(Fun(app))  # type: ignore[abstract]

    def test_concrete_loaders_bind_module(self, app) -> None:
        module = Fun(app)
        assert module.command_loader.module is module
        assert module.listener_loader.module is module
