# render the trajectory video of one lick in every trial of a session

from pathlib import Path
from typing import Any, Iterable, List, Optional
import argparse

from tqdm import tqdm

from TongueTrajectory.config import RenderConfig, add_render_arguments, config_from_args
from TongueTrajectory.load import find_session_files, select_licks_by_index
from TongueTrajectory.segmentation_video import make_segmentation_video

def make_segmentation_video_from_session(
        video_dir: Path,
        mask_dir: Path,
        dest_dir: Path,
        lick_index: int,
        trial_nums: Optional[Iterable[int]] = None,
        video_pattern: str = '*.avi',
        config: Optional[RenderConfig] = None,
        export_csv: bool = False,
        **kwargs: Any
    ) -> List[Path]:
    """
    Videos are matched to trials by sorted order: trial k (1-based) uses the 
    k-th video, the k-th Top* mask and the k-th Bot* mask. t_stats.mat is 
    read from the mask directory.

    Extra keyword arguments (top_mask_origin, pix_per_millimeter, 
    sample_frame...) are passed on to make_segmentation_video. A trial that
    fails is reported and skipped, a RuntimeError listing the failed trials
    is raised once the others are rendered.
    """

    files = find_session_files(video_dir, mask_dir, video_pattern)
    licks = select_licks_by_index(files.t_stats, lick_index)

    if trial_nums is not None:
        trial_nums = set(trial_nums)
        licks = [lick for lick in licks if lick.trial_num in trial_nums]

    if not licks:
        print(f"No lick #{lick_index} found in {files.t_stats}")
        return []

    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)

    # sample frames are saved as images
    sample = kwargs.get('sample_frame') is not None

    outputs = []
    failures = []
    for lick in tqdm(licks):

        try:
            if lick.trial_num is None:
                raise ValueError(f"lick #{lick_index} has no trial_num, cannot match it to a video")

            video, top_mask, bot_mask = files.trial(lick.trial_num)
            print(video.name)

            suffix = '.png' if sample else video.suffix
            result = make_segmentation_video(
                video = video, 
                top_mask = top_mask, 
                bot_mask = bot_mask, 
                t_stats = lick, 
                output_path = dest_dir / f"{video.stem}_lick{lick_index}_trajectory{suffix}",
                config = config,
                export_csv = export_csv,
                **kwargs
            )
        except (ValueError, IndexError, KeyError, FileNotFoundError, RuntimeError) as e:
            print(f"trial {lick.trial_num} failed: {e}")
            failures.append((lick.trial_num, e))
            continue

        outputs.append(result.output_path)

    if failures:
        failed = ', '.join(f"trial {trial}: {e}" for trial, e in failures)
        raise RuntimeError(f"{len(failures)}/{len(licks)} trials failed ({failed})")

    return outputs

def build_parser() -> argparse.ArgumentParser:

    parser = argparse.ArgumentParser(
        description="Render tongue trajectory videos of one lick across the trials of a session"
    )

    parser.add_argument(
        "video_dir",
        type=Path,
        help="Folder containing the raw trial videos",
    )

    parser.add_argument(
        "mask_dir",
        type=Path,
        help="Folder containing t_stats.mat and the Top*/Bot* mask stacks",
    )

    parser.add_argument(
        "dest_dir",
        type=Path,
        help="Output folder",
    )

    parser.add_argument(
        "lick_index",
        type=int,
        help="lick_index value of the licks to render",
    )

    parser.add_argument(
        "--trials",
        type=int,
        nargs="+",
        default=None,
        help="only render these trial numbers (default: all)",
    )

    parser.add_argument(
        "--video-pattern",
        default="*.avi",
        help="glob pattern of the trial videos",
    )

    return add_render_arguments(parser)

def main(args: argparse.Namespace) -> None:

    make_segmentation_video_from_session(
        video_dir = args.video_dir,
        mask_dir = args.mask_dir,
        dest_dir = args.dest_dir,
        lick_index = args.lick_index,
        trial_nums = args.trials,
        video_pattern = args.video_pattern,
        config = config_from_args(args),
        export_csv = args.export_csv
    )

def run() -> None:
    main(build_parser().parse_args())

if __name__ == '__main__':

    run()
