import pygame

def render_frame(screen: pygame.Surface, frame, sar: float = 1.0):
    """
    Scale and letter-/pillar-box a raw RGB frame onto `screen`.
    """
    data = frame.tobytes()        # must outlive `surf`
    surf = pygame.image.frombuffer(data, frame.shape[1::-1], "RGB")
    sw, sh = screen.get_size()
    vw, vh = surf.get_size()
    scale = min(sw / (vw * sar), sh / vh)
    surf = pygame.transform.smoothscale(
        surf,
        (max(1, int(vw * scale * sar)), max(1, int(vh * scale)))
    )
    screen.fill((0, 0, 0))
    x = (sw - surf.get_width()) // 2
    y = (sh - surf.get_height()) // 2
    screen.blit(surf, (x, y))


def draw_card(screen: pygame.Surface, lines: list[str]) -> None:
    """Full-screen black with centred green text."""
    w, h = screen.get_size()
    screen.fill((0, 0, 0))
    font  = pygame.font.SysFont("monospace", max(14, h // 24))
    total = len(lines) * font.get_linesize()
    y     = (h - total) // 2
    for ln in lines:
        txt = font.render(ln, True, (0, 255, 0))
        screen.blit(txt, ((w - txt.get_width()) // 2, y))
        y += font.get_linesize()
