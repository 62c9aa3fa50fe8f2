"""
Windowed CHIP-8 runner.

The window is the framebuffer consumer and the keyboard provider; the
machine's own thread drives the timers at 60 Hz.
"""

import argparse
import time

import pygame

from chipvm import Machine, MachineConfig, MachineError, KeyWaitTimeout, display_to_rgb, create_color_scheme
from chipvm.logging import ConsoleLogger, format_registers

# Modern key mapping
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}


def draw_overlay_text(surface, text_lines, position, font, bg_color=(0, 0, 0), text_color=(255, 255, 255), alpha=120):
    """Draw text with semi-transparent background overlay"""
    if not text_lines:
        return

    line_height = font.get_height()
    max_width = max(font.size(line)[0] for line in text_lines)
    overlay = pygame.Surface((max_width + 16, len(text_lines) * line_height + 8))
    overlay.set_alpha(alpha)
    overlay.fill(bg_color)
    surface.blit(overlay, position)

    x, y = position
    for i, line in enumerate(text_lines):
        text_surface = font.render(line, True, text_color)
        surface.blit(text_surface, (x + 8, y + 4 + i * line_height))


# FX0A must not freeze the window: poll for 1 ms, then retry next frame.
KEY_WAIT_TIMEOUT = 0.001


def runner_config(seed=0, log_level="INFO"):
    return MachineConfig(seed=seed, key_wait_timeout=KEY_WAIT_TIMEOUT, log_level=log_level)


def debug_lines(state, ips, ipf, status):
    """Overlay text: PC, I, SP, timers, V0-VF in two rows, speed and status."""
    registers = format_registers(state.V).split(" ")
    return [
        f"PC: 0x{int(state.pc):03X}  I: 0x{int(state.I):03X}  SP: {int(state.stack.pointer)}",
        f"Delay: {int(state.delay_timer)}  Sound: {int(state.sound_timer)}",
        " ".join(registers[:8]),
        " ".join(registers[8:]),
        f"CPU: {ips:.0f} Hz  IPF: {ipf}",
        status,
    ]


def run_emulator(rom_filename, scale=8, ipf=10, color_scheme="classic", seed=0, log_level="INFO"):
    """Main emulator loop"""
    logger = ConsoleLogger("runner", log_level=log_level)
    on_color, off_color = create_color_scheme(color_scheme)

    machine = Machine(runner_config(seed, log_level))

    try:
        machine.load_rom(rom_filename)
    except (OSError, MachineError) as e:
        logger.error(f"Cannot load {rom_filename}: {e}")
        machine.shutdown()
        return

    pygame.init()
    screen = pygame.display.set_mode((64 * scale, 32 * scale))
    pygame.display.set_caption(f"chipvm - {rom_filename}")
    clock = pygame.time.Clock()
    font = pygame.font.Font(None, 18)

    running = True
    paused = False
    halted = False
    show_debug = False
    start_time = time.time()

    logger.info("Controls: ESC=Quit, F1=Pause, F2=Reset, F3=Debug, +/-=Speed")

    try:
        while running:
            clock.tick(60)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_F1:
                        paused = not paused
                    elif event.key == pygame.K_F2:
                        machine.reset()
                        halted = False
                    elif event.key == pygame.K_F3:
                        show_debug = not show_debug
                    elif event.key == pygame.K_EQUALS:
                        ipf = min(100, ipf + 2)
                        logger.info(f"Speed: {ipf} IPF")
                    elif event.key == pygame.K_MINUS:
                        ipf = max(1, ipf - 2)
                        logger.info(f"Speed: {ipf} IPF")
                    elif event.key in KEY_MAP:
                        machine.keypad.press(KEY_MAP[event.key])
                elif event.type == pygame.KEYUP:
                    if event.key in KEY_MAP:
                        machine.keypad.release(KEY_MAP[event.key])

            if not paused and not halted:
                for _ in range(ipf):
                    try:
                        machine.step()
                    except KeyWaitTimeout:
                        break
                    except MachineError as e:
                        logger.error(f"Halted: {e}")
                        halted = True
                        break

            frame = display_to_rgb(machine.framebuffer(), scale, on_color, off_color)
            screen.blit(pygame.surfarray.make_surface(frame.swapaxes(0, 1)), (0, 0))

            if show_debug:
                state = machine.snapshot()
                runtime = time.time() - start_time
                ips = machine.instruction_count / runtime if runtime > 0 else 0
                status = "HALTED" if halted else ("PAUSED" if paused else "RUNNING")
                draw_overlay_text(screen, debug_lines(state, ips, ipf, status), (5, 5), font, alpha=100)

            pygame.display.flip()
    finally:
        machine.shutdown()
        pygame.quit()


def main():
    parser = argparse.ArgumentParser(description="Run a CHIP-8 program in a window")
    parser.add_argument("rom", type=str, help="Path to the CHIP-8 ROM file")
    parser.add_argument("--scale", type=int, default=8, help="Pixel upscaling factor (default: 8)")
    parser.add_argument("--ipf", type=int, default=10, help="Instructions per 60 Hz frame (default: 10)")
    parser.add_argument("--color-scheme", type=str, default="classic", help="Display colours (default: classic)")
    parser.add_argument("--seed", type=int, default=0, help="Random seed for CXNN (default: 0)")
    parser.add_argument("--log-level", type=str, default="INFO", help="Console log level (default: INFO)")
    args = parser.parse_args()

    run_emulator(args.rom, args.scale, args.ipf, args.color_scheme, args.seed, args.log_level)


if __name__ == "__main__":
    main()
