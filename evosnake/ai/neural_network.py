import functools

import numpy as np
import torch
import torch.nn as nn

from ..config import DEFAULT_TOPOLOGY
from ..errors import InvalidGenomeShape
from ..game.snake import Direction


@functools.lru_cache(maxsize=None)
def genome_layout(topology):
    # Where each layer lives in the flat genome: (weight slice, weight shape, bias slice).
    # Per layer the (out, in) weight matrix comes first, row-major, then the out biases.
    layout = []
    offset = 0
    for in_size, out_size in zip(topology[:-1], topology[1:]):
        weight_end = offset + in_size * out_size
        bias_end = weight_end + out_size
        layout.append((slice(offset, weight_end), (out_size, in_size), slice(weight_end, bias_end)))
        offset = bias_end
    return tuple(layout)


def genome_size(topology):
    return genome_layout(tuple(topology))[-1][2].stop


def freeze_genome(values):
    # Genomes are read-only once created; children are always new arrays
    genome = np.array(values, dtype=np.float64)
    genome.flags.writeable = False
    return genome


def random_genome(topology, rng, low=-1.0, high=1.0):
    return freeze_genome(rng.uniform(low, high, size=genome_size(topology)))


class NeuralNetwork(nn.Module):
    def __init__(self, topology=DEFAULT_TOPOLOGY, genome=None, device=None):
        # Feed-forward network decoded from a flat genome
        # Args:
        #   topology: Layer sizes, input first (32, 20, 12, 4 for the snake)
        #   genome: Flat weights and biases; random torch init when None
        #   device: Device to run on, CPU by default since inference is batch size 1
        super(NeuralNetwork, self).__init__()
        self.topology = tuple(topology)
        self.device = device or torch.device("cpu")
        self.layout = genome_layout(self.topology)

        self.layers = nn.ModuleList(
            nn.Linear(in_size, out_size, dtype=torch.float64)
            for in_size, out_size in zip(self.topology[:-1], self.topology[1:])
        )

        if genome is not None:
            self.set_genome(genome)

        self.to(self.device)
        self.eval()

    def set_genome(self, genome):
        """Copy a flat genome into the layer weights"""
        # torch.tensor needs writable numpy memory
        genome = np.array(genome, dtype=np.float64)
        expected = self.layout[-1][2].stop
        if genome.ndim != 1 or genome.shape[0] != expected:
            raise InvalidGenomeShape(
                f"genome has {genome.size} values, topology {list(self.topology)} needs {expected}"
            )

        with torch.no_grad():
            for layer, (weight_slice, weight_shape, bias_slice) in zip(self.layers, self.layout):
                layer.weight.copy_(torch.tensor(genome[weight_slice].reshape(weight_shape)))
                layer.bias.copy_(torch.tensor(genome[bias_slice]))

    def get_genome(self):
        """Extract all weights and biases as a flat numpy array"""
        weights = []
        for layer in self.layers:
            weights.append(layer.weight.detach().cpu().numpy().ravel())
            weights.append(layer.bias.detach().cpu().numpy())
        return freeze_genome(np.concatenate(weights))

    def forward(self, x):
        # ReLU on hidden layers, softmax over the output layer
        for layer in self.layers[:-1]:
            x = torch.relu(layer(x))
        return torch.softmax(self.layers[-1](x), dim=-1)

    def probabilities(self, state):
        with torch.no_grad():
            state_tensor = torch.tensor(np.asarray(state, dtype=np.float64)).unsqueeze(0).to(self.device)
            output = self.forward(state_tensor)
        return output.squeeze(0).cpu().numpy()

    def act(self, state):
        # np.argmax returns the first maximal index, so ties go to the lowest index
        return int(np.argmax(self.probabilities(state)))

    def decide(self, state):
        """Absolute direction for the snake (4-output networks only)"""
        return Direction.from_index(self.act(state))
