from pathlib import Path
import argparse

from TongueTrajectory.config import add_render_arguments, config_from_args
from TongueTrajectory.segmentation_video import make_segmentation_video

def build_parser() -> argparse.ArgumentParser:

    parser = argparse.ArgumentParser(
        description="Render a raw | masked | trajectory video of a single lick"
    )

    parser.add_argument(
        "video",
        type=Path,
        help="Raw video of the mouse licking",
    )

    parser.add_argument(
        "top_mask",
        type=Path,
        help="Top view mask stack (.mat with mask_pred, .npz or .npy)",
    )

    parser.add_argument(
        "bot_mask",
        type=Path,
        help="Bottom view mask stack (.mat with mask_pred, .npz or .npy)",
    )

    parser.add_argument(
        "t_stats",
        type=Path,
        help="t_stats .mat file of the video",
    )

    parser.add_argument(
        "-l", "--lick-num",
        type=int,
        default=0,
        help="position of the lick within t_stats (0-based)",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="output video, or image with --sample-frame (default: <video>_trajectory.<ext>)",
    )

    parser.add_argument(
        "--sample-frame",
        type=int,
        default=None,
        help="only render this frame of the lick, to tune parameters quickly",
    )

    return add_render_arguments(parser)

def main(args: argparse.Namespace) -> None:

    make_segmentation_video(
        video = args.video,
        top_mask = args.top_mask,
        bot_mask = args.bot_mask,
        t_stats = args.t_stats,
        lick_num = args.lick_num,
        output_path = args.output,
        sample_frame = args.sample_frame,
        config = config_from_args(args),
        export_csv = args.export_csv
    )

def run() -> None:
    main(build_parser().parse_args())

if __name__ == '__main__':

    run()
