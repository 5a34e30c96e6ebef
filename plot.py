import json
import matplotlib.pyplot as plt
import numpy as np
import sys
import glob

# --- CONFIGURATION ---
# Plot the file given on the command line, else the most recent export
if len(sys.argv) > 1:
    target_file = sys.argv[1]
else:
    json_files = glob.glob("trials_*.json")
    if not json_files:
        print("❌ No trials_*.json files found!")
        sys.exit(1)
    target_file = sorted(json_files)[-1]
print(f"🔍 Analyzing: {target_file}")

with open(target_file, 'r') as f:
    data = json.load(f)

counts = data['counts']
shots = data['shots']
meta = data.get('metadata', {})

# Sort outcomes by frequency, keep the top 32 so labels stay readable
ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:32]
states = [s for s, _ in ranked]
probs = np.array([c for _, c in ranked]) / shots

# --- PLOTTING ---
plt.style.use('dark_background')
fig = plt.figure(figsize=(14, 8))
plt.suptitle(
    f"QREGISTER TRIALS: {meta.get('topology', '?')} | steps={meta.get('steps', '?')}\n"
    f"Shots: {shots} | Purity: {meta.get('purity', 0.0):.4f}",
    fontsize=14, color='#00ff41', fontweight='bold',
)

# PANEL 1: Outcome histogram
ax1 = plt.subplot(2, 1, 1)
colors = ['#00ff41' if s == data['top_state'] else '#ff00ff' for s in states]
bars = ax1.bar(states, probs, color=colors, alpha=0.8)
ax1.set_title("Outcome Distribution", fontsize=12, color='white')
ax1.set_ylabel("Probability", fontsize=10)
ax1.set_xlabel(f"Bitstring (qubits {data['indices']}, left to right)", fontsize=10)
ax1.tick_params(axis='x', rotation=90)
for bar in bars[:5]:
    height = bar.get_height()
    ax1.text(bar.get_x() + bar.get_width() / 2., height,
             f'{height:.1%}', ha='center', va='bottom', color='white', fontsize=8)

# PANEL 2: Cumulative mass of the ranked outcomes
ax2 = plt.subplot(2, 1, 2)
ax2.plot(range(1, len(probs) + 1), np.cumsum(probs), 'o-', color='#00ff41', linewidth=2)
ax2.axhline(y=1.0, color='yellow', linestyle=':', alpha=0.5)
ax2.set_title("Cumulative Probability (ranked outcomes)", fontsize=12, color='white')
ax2.set_xlabel("Rank", fontsize=10)
ax2.set_ylabel("Cumulative probability", fontsize=10)
ax2.set_ylim(0, 1.05)
ax2.grid(True, alpha=0.3)

plt.tight_layout(rect=[0, 0.03, 1, 0.93])
output_filename = f"trials_{data['timestamp']}.png"
plt.savefig(output_filename, dpi=200, facecolor='black')
print(f"🚀 Visualization saved to: {output_filename}")
plt.show()
