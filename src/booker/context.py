from __future__ import annotations

from typing import Optional

from booker.config import RunConfig
from booker.core.links import LinkResolver
from booker.io.fs import Vault, VaultIndex
from booker.pipeline.build import BuildRunner
from booker.stages.compile import Compiler
from booker.stages.parse import FrontmatterParser
from booker.stages.report import Notice, StreamNotice, UserMessagePresenter
from booker.stages.scaffold import Scaffolder

class BookerContext:
    """Wires every service for one vault."""

    def __init__(self, cfg: RunConfig, notice: Optional[Notice] = None) -> None:
        self.config = cfg
        self.vault = Vault(cfg.vault_root)
        self.index = VaultIndex(self.vault)
        self.presenter = UserMessagePresenter(notice or StreamNotice())
        self.link_resolver = LinkResolver(self.index)
        self.parser = FrontmatterParser(self.index)
        self.compiler = Compiler(self.link_resolver, self.vault)
        self.build_runner = BuildRunner(
            compiler=self.compiler,
            parser=self.parser,
            link_resolver=self.link_resolver,
            presenter=self.presenter,
            index=self.index,
            dry_run=cfg.dry_run,
        )
        self.scaffolder = Scaffolder(self.vault, self.parser, self.presenter)
