import argparse
import importlib.util
import logging
import os
import pprint
import sys
import time
import traceback
import types
import typing

import parsnip
from parsnip import runtime


class HarnessError(Exception):
    pass


###############################################################################
# Dynamic Modules: Detect and Reload Modules when they Change
###############################################################################

VERSION = 0


class DynamicModule[MT]:
    file_name: str
    member_name: str | None

    last_time: float | None
    module: types.ModuleType | None
    value: MT | None

    def __init__(self, file_name, member_name):
        self.file_name = file_name
        self.member_name = member_name

        self.last_time = None
        self.module = None
        self.value = None

    def _predicate(self, member) -> bool:
        return True

    def _default_member(self) -> typing.Any:
        assert self.module is not None
        members = [
            (name, member)
            for name, member in vars(self.module).items()
            if not name.startswith("_") and self._predicate(member)
        ]
        if len(members) == 0:
            raise HarnessError(f"Nothing suitable found in {self.file_name}")
        if len(members) > 1:
            raise HarnessError(
                f"{len(members)} candidates found in {self.file_name}: "
                f"{', '.join(name for name, _ in members)}"
            )
        return members[0][1]

    def _transform(self, value) -> MT:
        return value

    def _load(self) -> types.ModuleType:
        mod_name = os.path.splitext(os.path.basename(self.file_name))[0]
        spec = importlib.util.spec_from_file_location(mod_name, self.file_name)
        if spec is None or spec.loader is None:
            raise HarnessError(f"{self.file_name} does not seem to be a module")

        # Let the grammar import its neighbours.
        directory = os.path.dirname(os.path.abspath(self.file_name))
        if directory not in sys.path:
            sys.path.insert(0, directory)

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    def get(self) -> MT:
        st = os.stat(self.file_name)
        if self.last_time == st.st_mtime:
            assert self.value is not None
            return self.value

        global VERSION
        VERSION += 1

        self.value = None
        try:
            self.module = self._load()
        except HarnessError:
            raise
        except Exception as e:
            # Whatever the grammar file itself raised while executing.
            raise HarnessError(f"{self.file_name} failed to load: {e!r}") from e

        if self.member_name is None:
            member = self._default_member()
        else:
            member = getattr(self.module, self.member_name, None)
            if member is None:
                raise HarnessError(f"Cannot find {self.member_name} in {self.file_name}")
            if not self._predicate(member):
                raise HarnessError(f"{self.member_name} in {self.file_name} is not suitable")

        self.value = self._transform(member)
        self.last_time = st.st_mtime
        return self.value


class DynamicGrammarModule(DynamicModule[parsnip.Parser]):
    """A module holding a grammar: some module-level `Parser`. We take the one
    named `grammar` if there is one; otherwise there had better be only one.
    """

    def _predicate(self, member) -> bool:
        return isinstance(member, parsnip.Parser)

    def _default_member(self) -> typing.Any:
        assert self.module is not None
        member = getattr(self.module, "grammar", None)
        if self._predicate(member):
            return member
        return super()._default_member()


class Harness:
    grammar_module: DynamicGrammarModule
    source_path: str
    source: str | None
    last_version: int

    def __init__(self, grammar_file, grammar_member, source_path):
        self.grammar_module = DynamicGrammarModule(grammar_file, grammar_member)
        self.source_path = source_path
        self.source = None
        self.last_version = -1

    def update(self) -> "runtime.ParseOutcome | None":
        """Re-parse the source if the grammar or the source changed since last
        time. Returns None if nothing changed.
        """
        global VERSION

        grammar = self.grammar_module.get()

        with open(self.source_path, "r", encoding="utf-8") as f:
            source = f.read()
            if source != self.source:
                VERSION += 1
                self.source = source

        if VERSION == self.last_version:
            return None  # Just stop, do nothing, it's all the same.
        self.last_version = VERSION

        start_time = time.time()
        outcome = runtime.parse(grammar, source)
        logging.getLogger("parsnip.harness").info(
            f"Parsed {self.source_path} in {time.time() - start_time:.3}s"
        )
        return outcome

    def render(self, outcome: runtime.ParseOutcome) -> list[str]:
        assert self.source is not None

        match outcome:
            case runtime.Success(value=value):
                return pprint.pformat(value).splitlines()

            case runtime.Failure(location=location):
                lines = [outcome.format(self.source)]

                # Show the offending line, with a caret under the column.
                source_lines = self.source.splitlines()
                if location.line - 1 < len(source_lines):
                    lines.append(source_lines[location.line - 1])
                    lines.append((" " * (location.column - 1)) + "^")
                return lines

            case _:
                typing.assert_never(outcome)

    def run(self, watch: bool, interval: float) -> int:
        status = 1
        while True:
            try:
                outcome = self.update()
            except Exception as e:
                if not watch:
                    raise
                print("Error loading grammar:", file=sys.stderr)
                for line in traceback.format_exception(e):
                    print("  " + line.rstrip(), file=sys.stderr)
                outcome = None

            if outcome is not None:
                status = 0 if isinstance(outcome, runtime.Success) else 1
                for line in self.render(outcome):
                    print(line)

            if not watch:
                return status

            sys.stdout.flush()
            time.sleep(interval)


def main(args: list[str]) -> int:
    parser = argparse.ArgumentParser(description="Parse a file with a parsnip grammar")
    parser.add_argument("grammar", help="Path to a python file containing the grammar to load")
    parser.add_argument("source_path", help="Path to an input file to parse")
    parser.add_argument(
        "--grammar-member",
        type=str,
        default=None,
        help="The name of the parser in the grammar module to use. The default is the member "
        "named 'grammar', or else the only parser in the module. You should only need to "
        "specify this if you have more than one grammar in your module.",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running, and re-parse whenever the grammar or the source changes.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=1.0,
        help="How often to check for changes in --watch mode, in seconds.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level. DEBUG shows what the parser is doing; it is very chatty.",
    )

    parsed = parser.parse_args(args[1:])

    logging.basicConfig(
        level=getattr(logging, parsed.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    h = Harness(
        grammar_file=parsed.grammar,
        grammar_member=parsed.grammar_member,
        source_path=parsed.source_path,
    )
    try:
        return h.run(parsed.watch, parsed.interval)
    except KeyboardInterrupt:
        return 130
    except HarnessError as e:
        print(f"Error loading grammar: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main(sys.argv))
