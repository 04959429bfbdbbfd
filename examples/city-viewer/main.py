"""City Viewer - top-down pygame front end for the isotown engine.

Keys 1-7 pick a building, E toggles erase, WASD moves the player (picking up
dropped coins), [ and ] change the tax rate, N starts a new city.
Left click places or erases, right click always erases.
"""
from __future__ import annotations

import argparse
import sys

import pygame

from isotown import (
    CityEngine, GameStatus, Rejected, WorldCondition,
    ROAD, HOUSE, CAFE, OFFICE, RESTAURANT, POLICE, FIRE,
)
from isotown.grid import iter_buildings

TILE_SIZE = 48
SIDEBAR_W = 260
STATUS_H = 32
FPS = 30

TOOLS = [ROAD, HOUSE, CAFE, OFFICE, RESTAURANT, POLICE, FIRE]

BUILDING_COLORS: dict[str, tuple[int, int, int]] = {
    ROAD: (102, 102, 102),
    HOUSE: (255, 107, 157),
    CAFE: (255, 157, 107),
    OFFICE: (107, 157, 255),
    RESTAURANT: (230, 126, 34),
    POLICE: (52, 152, 219),
    FIRE: (231, 76, 60),
}
GRASS_DAY = (74, 124, 89)
GRASS_NIGHT = (32, 56, 48)
COIN = (255, 215, 0)
PLAYER = (250, 250, 250)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="IsoTown - pygame city viewer")
    p.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    p.add_argument("--weather", choices=[c.value for c in WorldCondition], default="CLEAR")
    return p.parse_args()


class Viewer:
    def __init__(self, engine: CityEngine) -> None:
        self.engine = engine
        self.tool = ROAD
        self.erase_mode = False
        self.message = "Build a road, then a house next to it."
        self.grid_w = engine.config.width * TILE_SIZE
        self.grid_h = engine.config.height * TILE_SIZE
        self.font = pygame.font.SysFont("monospace", 14)

    def click(self, mx: int, my: int, button: int) -> None:
        if button == 3 or self.erase_mode:
            result = self.engine.erase(mx, my)
            label = "Erase"
        else:
            result = self.engine.place(self.tool, mx, my)
            label = self.engine.catalog.get(self.tool).name
        if isinstance(result, Rejected):
            self.message = f"{label} rejected: {result.reason.value}"
        else:
            self.message = result.city_log[0]

    def key(self, key: int) -> None:
        moves = {pygame.K_w: "up", pygame.K_s: "down", pygame.K_a: "left", pygame.K_d: "right"}
        if key in moves:
            got = self.engine.move_player(moves[key])
            if got:
                self.message = f"+{got} coin{'s' if got > 1 else ''}"
        elif pygame.K_1 <= key <= pygame.K_7:
            self.tool = TOOLS[key - pygame.K_1]
            self.erase_mode = False
            self.message = f"Selected: {self.engine.catalog.get(self.tool).name}"
        elif key == pygame.K_e:
            self.erase_mode = not self.erase_mode
            self.message = f"Erase mode {'ON' if self.erase_mode else 'OFF'}"
        elif key in (pygame.K_LEFTBRACKET, pygame.K_RIGHTBRACKET):
            step = 0.01 if key == pygame.K_RIGHTBRACKET else -0.01
            rate = self.engine.set_tax_rate(round(self.engine.state.tax_rate + step, 2))
            self.message = f"Tax rate {rate:.0%}"
        elif key == pygame.K_n:
            self.engine.new_game(self.engine.state.world_condition)
            self.message = "New city"

    def draw(self, surface: pygame.Surface) -> None:
        state = self.engine.state
        is_day = self.engine.clock.is_day(state.tick_count + 1)
        surface.fill((20, 20, 28))
        surface.fill(GRASS_DAY if is_day else GRASS_NIGHT, pygame.Rect(0, 0, self.grid_w, self.grid_h))
        for x, y, building in iter_buildings(state.grid):
            rect = pygame.Rect(x * TILE_SIZE + 2, y * TILE_SIZE + 2, TILE_SIZE - 4, TILE_SIZE - 4)
            pygame.draw.rect(surface, BUILDING_COLORS.get(building.type, (200, 200, 200)), rect)
        for coin in state.dropped_coins:
            centre = (coin.x * TILE_SIZE + TILE_SIZE // 2, coin.y * TILE_SIZE + TILE_SIZE // 2)
            pygame.draw.circle(surface, COIN, centre, 6)
        player = self.engine.roster.player
        if player is not None:
            centre = (player.x * TILE_SIZE + TILE_SIZE // 2, player.y * TILE_SIZE + TILE_SIZE // 2)
            pygame.draw.circle(surface, PLAYER, centre, 10, 3)
        for i in range(self.engine.config.width + 1):
            pygame.draw.line(surface, (30, 30, 30), (i * TILE_SIZE, 0), (i * TILE_SIZE, self.grid_h))
        for j in range(self.engine.config.height + 1):
            pygame.draw.line(surface, (30, 30, 30), (0, j * TILE_SIZE), (self.grid_w, j * TILE_SIZE))

        lines = [
            f"Coins      {state.coins}",
            f"Population {state.population}",
            f"Jobs       {state.jobs}",
            f"Happiness  {state.happiness}",
            f"Tax        {state.tax_rate:.0%}",
            f"Weather    {state.world_condition.value}",
            f"Tick       {state.tick_count} ({'day' if is_day else 'night'})",
            f"Next tick  {self.engine.seconds_until_next()}s",
            "",
            f"Tool: {'ERASE' if self.erase_mode else self.tool}",
            "",
            *state.city_log,
        ]
        if self.engine.status is not GameStatus.IN_PROGRESS:
            lines.insert(0, f"*** {self.engine.status.value.upper()} *** (N: new city)")
        for i, line in enumerate(lines):
            text = self.font.render(line, True, (220, 220, 220))
            surface.blit(text, (self.grid_w + 10, 10 + i * 18))

        bar = pygame.Rect(0, self.grid_h, self.grid_w + SIDEBAR_W, STATUS_H)
        pygame.draw.rect(surface, (30, 30, 40), bar)
        surface.blit(self.font.render(self.message, True, (200, 200, 200)), (8, self.grid_h + 8))


def main() -> None:
    args = parse_args()
    pygame.init()
    engine = CityEngine(seed=args.seed)
    engine.set_world_condition(WorldCondition(args.weather))
    viewer = Viewer(engine)
    screen = pygame.display.set_mode((viewer.grid_w + SIDEBAR_W, viewer.grid_h + STATUS_H))
    pygame.display.set_caption("IsoTown")
    clock = pygame.time.Clock()

    running = True
    while running:
        clock.tick(FPS)
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                else:
                    viewer.key(event.key)
            elif event.type == pygame.MOUSEBUTTONDOWN:
                mx, my = event.pos[0] // TILE_SIZE, event.pos[1] // TILE_SIZE
                if mx < engine.config.width and my < engine.config.height:
                    viewer.click(mx, my, event.button)

        engine.advance()
        viewer.draw(screen)
        pygame.display.flip()

    pygame.quit()
    sys.exit()


if __name__ == "__main__":
    main()
