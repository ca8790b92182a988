"""
Pytest configuration and fixtures for registry tests.
"""

import pytest
from pathlib import Path
import tempfile
import shutil
from typing import Generator

from script_registry.core.config import RegistryConfig
from script_registry.core.declaration_parser import DeclarationParser, ParseResult
from script_registry.core.registry_builder import build_registry
from script_registry.core.models import ScriptRegistry


SAMPLE_DECLARATIONS = '''/* IMPORTANT: Do not edit this file.
   Copyright (c) Microsoft Corporation.
   ***************************************************************************** */
/**
 * @packageDocumentation
 * Contains many types related to manipulating a Minecraft world.
 *
 * Manifest Details
 * ```json
 * {
 *   "module_name": "@minecraft/server",
 *   "version": "2.3.0"
 * }
 * ```
 *
 */
import * as minecraftcommon from '@minecraft/common';
/**
 * The types of block components that are accessible via
 * function Block.getComponent.
 */
export enum BlockComponentTypes {
    /**
     * @remarks
     * Represents the inventory of a block.
     */
    Inventory = 'minecraft:inventory',
    Piston = 'minecraft:piston',
}
/**
 * Specifies a mechanism for displaying scores on a scoreboard.
 */
export enum DisplaySlotId {
    BelowName = 'BelowName',
    List = 'List',
    Sidebar = 'Sidebar',
}
export enum Direction {
    Down = 0,
    Up = 1,
}
/**
 * Represents the state of an entity.
 */
export class Entity {
    private constructor();
    /**
     * @remarks
     * Dimension that the entity is currently within.
     *
     * @throws This property can throw when used.
     */
    readonly dimension: Dimension;
    /**
     * @remarks
     * Unique identifier of the entity.
     */
    readonly id: string;
    nameTag: string;
    /**
     * @remarks
     * Adds a specified tag to an entity.
     *
     * This function can't be called in read-only mode.
     *
     * @param tag
     * Content of the tag to add.
     * @throws This function can throw errors.
     */
    addTag(tag: string): boolean;
    teleport(location: Vector3, teleportOptions?: TeleportOptions): void;
}
/**
 * Represents a player within the world.
 */
export class Player extends Entity {
    private constructor();
    readonly name: string;
    /**
     * @beta
     * @remarks
     * Sends a message to the player.
     */
    sendMessage(message: (RawMessage | string)[] | RawMessage | string): void;
}
/**
 * Contains a set of events that are available across the scope of the world.
 * @deprecated Use WorldAfterEvents.
 */
export class WorldEvents {
    private constructor();
}
export interface Vector3 {
    x: number;
    y: number;
    z: number;
}
export interface TeleportOptions {
    checkForBlocks?: boolean;
    dimension?: Dimension;
}
/**
 * @example showForm.ts
 * ```typescript
 * import { world } from "@minecraft/server";
 * import { ActionFormData } from "@minecraft/server-ui";
 * const form = new ActionFormData();
 * ```
 */
export function getPlayers(options?: EntityQueryOptions): Player[];
export type ItemCallback = (item: ItemStack, slot: number) => void;
/**
 * @preview
 */
export declare const world: World;
/**
 * @packageDocumentation
 * ```json
 * {
 *   "module_name": "@minecraft/server-ui",
 *   "version": "1.3.0"
 * }
 * ```
 */
import * as minecraftserver from '@minecraft/server';
export class ActionFormData {
    body(bodyText: RawMessage | string): ActionFormData;
    show(player: minecraftserver.Player): Promise<ActionFormResponse>;
}
export enum FormCancelationReason {
    UserBusy = 'UserBusy',
    UserClosed = 'UserClosed',
}
'''


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_DECLARATIONS


@pytest.fixture
def config() -> RegistryConfig:
    """Default configuration for testing."""
    return RegistryConfig()


@pytest.fixture
def parser(config: RegistryConfig) -> DeclarationParser:
    """Create a DeclarationParser instance for testing."""
    return DeclarationParser(config)


@pytest.fixture
def sample_parse_result(parser: DeclarationParser, sample_text: str) -> ParseResult:
    return parser.parse_text(sample_text, source_name="index.d.ts")


@pytest.fixture
def sample_registry(sample_parse_result: ParseResult, config: RegistryConfig) -> ScriptRegistry:
    return build_registry(
        sample_parse_result.elements,
        config,
        source_file="index.d.ts",
        modules_seen=sample_parse_result.modules_seen(),
        detected_versions=sample_parse_result.detected_versions(),
        generated_at="2026-01-01T00:00:00+00:00",
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    temp_path = Path(tempfile.mkdtemp())

    yield temp_path

    # Cleanup after test
    shutil.rmtree(temp_path)


@pytest.fixture
def sample_file(temp_dir: Path, sample_text: str) -> Path:
    """Write the sample declarations to a file."""
    source = temp_dir / "index.d.ts"
    source.write_text(sample_text, encoding="utf-8")
    return source
