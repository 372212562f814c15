import argparse
import os
from fluidmorph.core import utils
from fluidmorph.core.config import SimulationConfig
from fluidmorph.core.session import MorphSession
from fluidmorph.core.simulate import run_simulation
from fluidmorph.visualization.progress_gif import FrameCollector

def main(argv=None):
    parser = argparse.ArgumentParser(description="fluidmorph — particles flow into a target image.")
    parser.add_argument("--target", required=True, help="Path to the image the particles converge onto")
    parser.add_argument("--source", default=None, help="Optional second image; enables transform mode")
    parser.add_argument("--width", type=int, default=200, help="Canvas width (both images are resized)")
    parser.add_argument("--height", type=int, default=200, help="Canvas height (both images are resized)")
    parser.add_argument("--stride", type=int, default=3, help="Sample every n-th pixel")
    parser.add_argument("--cell-size", type=int, default=8, help="Spatial grid cell size in pixels")
    parser.add_argument("--damping", type=float, default=0.9, help="Velocity damping per tick")
    parser.add_argument("--ticks", type=int, default=300, help="Number of simulation ticks")
    parser.add_argument("--frame-interval", type=int, default=3, help="Keep every n-th frame for the GIF")
    parser.add_argument("--seed", type=int, default=0, help="Seed for single-image start positions")
    parser.add_argument("--out", default="out_fluidmorph", help="Output directory")
    parser.add_argument("--fps", type=int, default=30, help="GIF frame rate")
    args = parser.parse_args(argv)

    os.makedirs(args.out, exist_ok=True)

    print("Loading images...")
    target = utils.load_raster(args.target, args.width, args.height)
    second = utils.load_raster(args.source, args.width, args.height) if args.source else None

    config = SimulationConfig(
        stride=args.stride,
        cell_size=args.cell_size,
        damping=args.damping,
        seed=args.seed,
    )
    session = MorphSession(target, second, config=config, verbose=True)
    if second is not None:
        print("Building pixel mapping...")
        session.toggle_transform_mode()
    print(f"{len(session.state.population)} particles in {session.mode} mode")

    collector = FrameCollector(out_dir=None, keep_frames=True)

    print("Running simulation...")
    stats = run_simulation(
        session,
        args.ticks,
        frame_callback=collector.callback,
        frame_interval_ticks=args.frame_interval,
        verbose=True,
    )

    utils.save_raster(session.last_frame, os.path.join(args.out, "final.png"))
    gif_path = os.path.join(args.out, "fluidmorph.gif")
    collector.save_gif(gif_path, fps=args.fps)
    print(f" Done! {stats['progress']:.1f}% converged, saved GIF to {gif_path}")

if __name__ == "__main__":
    main()
