from __future__ import annotations
import os, tempfile
import streamlit as st
from fluidmorph.core import utils
from fluidmorph.core.config import SimulationConfig
from fluidmorph.core.session import MorphSession
from fluidmorph.core.simulate import run_simulation
from fluidmorph.visualization.progress_gif import FrameCollector

st.set_page_config(page_title="fluidmorph", page_icon="🌊", layout="wide")

st.title("fluidmorph — watch particles flow into an image")

with st.sidebar:
    st.header("⚙️ Settings")
    size = st.slider("Canvas size (pixels per side)", 64, 320, 200, step=16)
    stride = st.slider("Sampling stride", 2, 8, 3)
    ticks = st.slider("Ticks", 50, 600, 300, step=50)
    damping = st.slider("Damping", 0.80, 0.99, 0.90, step=0.01)
    fps = st.slider("GIF FPS", 10, 60, 30)
    seed = st.number_input("Random seed", value=0, step=1)
    run_button = st.button("🚀 Run")

st.markdown("Upload a **target** image and, for transform mode, a **second** image the particles start from:")

col1, col2 = st.columns(2)
with col1:
    tgt_file = st.file_uploader("Target image", type=["jpg", "jpeg", "png"], key="tgt")
with col2:
    src_file = st.file_uploader("Second image (optional)", type=["jpg", "jpeg", "png"], key="src")

if run_button:
    if not tgt_file:
        st.error("Please upload a target image.")
        st.stop()

    with tempfile.TemporaryDirectory() as tmp:
        tgt_path = os.path.join(tmp, "target.png")
        with open(tgt_path, "wb") as f:
            f.write(tgt_file.getbuffer())
        target = utils.load_raster(tgt_path, size, size)

        second = None
        if src_file:
            src_path = os.path.join(tmp, "second.png")
            with open(src_path, "wb") as f:
                f.write(src_file.getbuffer())
            second = utils.load_raster(src_path, size, size)

        config = SimulationConfig(stride=stride, damping=damping, seed=int(seed))
        session = MorphSession(target, second, config=config)
        if second is not None:
            with st.spinner("Pairing pixels..."):
                session.toggle_transform_mode()
        else:
            st.info("No second image — running in single image mode.")

        collector = FrameCollector(out_dir=None, keep_frames=True)
        progress = st.progress(0)
        log_placeholder = st.empty()

        def progress_frame(frame, idx):
            collector.callback(frame, idx)
            progress.progress(min(1.0, session.progress / 100.0))
            log_placeholder.text(f"Tick {session.tick_count} • {session.progress:.1f}%")

        stats = run_simulation(
            session,
            ticks,
            frame_callback=progress_frame,
            frame_interval_ticks=max(1, ticks // 100),
            verbose=False,
        )

        gif_path = os.path.join(tmp, "fluidmorph.gif")
        collector.save_gif(gif_path, fps=fps)

        st.success("✅ Done!")
        st.image(gif_path, caption=f"{session.mode} mode", use_column_width=True)

        with open(gif_path, "rb") as f:
            st.download_button("⬇️ Download GIF", data=f.read(), file_name="fluidmorph.gif")

        st.markdown(f"**Particles:** {len(session.state.population)} • **Progress:** {stats['progress']:.1f}% • **Time:** {stats['duration_s']:.2f}s")
